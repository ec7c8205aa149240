"""Tests for catalog_sync/common/csv_utils.py"""

from catalog_sync.common.csv_utils import parse_csv_text, parse_tsv_lines


class TestParseCsvText:
    def test_columns_by_header_name(self):
        text = "productId,name,extNumber\n1,Pikachu,25/102\n"
        rows = parse_csv_text(text)
        assert rows == [{"productId": "1", "name": "Pikachu", "extNumber": "25/102"}]

    def test_missing_cells_default_to_empty(self):
        text = "productId,name,extNumber\n1,Pikachu\n"
        rows = parse_csv_text(text)
        assert rows[0]["extNumber"] == ""

    def test_quoted_commas(self):
        text = 'productId,name\n1,"Pikachu, Surfing"\n'
        assert parse_csv_text(text)[0]["name"] == "Pikachu, Surfing"

    def test_skips_blank_lines(self):
        text = "productId,name\n1,A\n\n,\n2,B\n"
        rows = parse_csv_text(text)
        assert [r["productId"] for r in rows] == ["1", "2"]

    def test_strips_bom(self):
        text = "\ufeffgroupId,name\n3,Base Set\n"
        assert parse_csv_text(text)[0]["groupId"] == "3"

    def test_extra_cells_dropped(self):
        text = "a,b\n1,2,3\n"
        assert parse_csv_text(text) == [{"a": "1", "b": "2"}]

    def test_empty_document(self):
        assert parse_csv_text("") == []
        assert parse_csv_text("a,b\n") == []


class TestParseTsvLines:
    def test_splits_tabs(self):
        assert parse_tsv_lines("1\tSKU-1\t100\n2\tSKU-2\t200\n") == [
            ["1", "SKU-1", "100"],
            ["2", "SKU-2", "200"],
        ]

    def test_drops_blank_lines(self):
        assert parse_tsv_lines("\n1\ta\n\n") == [["1", "a"]]

    def test_empty(self):
        assert parse_tsv_lines("") == []
