"""
Remote-execution backend.

Talks to the WordPress host over SSH:
- the snapshot is one MySQL query joining posts with their SKU and price meta
- price updates are one CASE statement per chunk, issued for `_price`
  and mirrored to `_regular_price`
- creates go through WP-CLI one at a time (no bulk create), pausing every
  few creates to keep load on the host down
"""

import json
import logging
import shlex
import time
from decimal import Decimal
from typing import Callable, List

from ..common.config_loader import ConfigurationError, SSHSettings
from ..common.text_utils import escape_sql_literal
from ..models import CreateOp, ExistingRecord, UpdateOp
from .base import BackendError, StoreBackend
from .remote_shell import RemoteShell
from .snapshot import InventorySnapshot

logger = logging.getLogger(__name__)

PRICE_META_KEYS = ("_price", "_regular_price")


class RemoteExecutionBackend(StoreBackend):
    """
    Direct database and WP-CLI execution over SSH.

    Usage:
        backend = RemoteExecutionBackend.from_settings(settings.ssh)
        backend.connect()
        snapshot = backend.load_snapshot()
    """

    name = "ssh"
    settings_section = "ssh"
    requires_connection = True

    def __init__(
        self,
        shell: RemoteShell,
        db_name: str,
        db_user: str,
        db_password: str,
        wp_path: str,
        db_prefix: str = "wp_",
        category_id: int = 199,
        update_batch_size: int = 500,
        create_batch_size: int = 50,
        batch_delay: float = 0.0,
        create_pause_every: int = 10,
        create_pause_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.shell = shell
        self.db_name = db_name
        self.db_user = db_user
        self.db_password = db_password
        self.wp_path = wp_path
        self.db_prefix = db_prefix
        self.category_id = category_id
        self.update_batch_size = update_batch_size
        self.create_batch_size = create_batch_size
        self.batch_delay = batch_delay
        self.create_pause_every = create_pause_every
        self.create_pause_seconds = create_pause_seconds
        self._sleep = sleep
        self._create_attempts = 0

    @classmethod
    def from_settings(cls, settings: SSHSettings) -> "RemoteExecutionBackend":
        """
        Build from settings.

        Raises:
            ConfigurationError: If SSH or database credentials are missing
        """
        missing = settings.missing()
        if missing:
            raise ConfigurationError(
                f"SSH credentials not configured. Set {', '.join(missing)}."
            )
        shell = RemoteShell(
            host=settings.host,
            port=settings.port,
            username=settings.user,
            password=settings.password,
            command_timeout=settings.command_timeout,
        )
        return cls(
            shell,
            db_name=settings.db_name,
            db_user=settings.db_user,
            db_password=settings.db_password,
            wp_path=settings.wp_path,
            db_prefix=settings.db_prefix,
            category_id=settings.category_id,
            update_batch_size=settings.update_batch_size,
            create_batch_size=settings.create_batch_size,
            batch_delay=settings.batch_delay,
            create_pause_every=settings.create_pause_every,
            create_pause_seconds=settings.create_pause_seconds,
        )

    def connect(self) -> None:
        self.shell.connect()

    def close(self) -> None:
        self.shell.close()

    # ------------------------------------------------------------------
    # Command builders
    # ------------------------------------------------------------------

    def mysql_command(self, query: str) -> str:
        """Shell command running `query` through the mysql client (no header row)."""
        return (
            f"mysql -u {shlex.quote(self.db_user)} -p{shlex.quote(self.db_password)} "
            f"{shlex.quote(self.db_name)} -N -e {shlex.quote(' '.join(query.split()))}"
        )

    def mysql(self, query: str) -> str:
        return self.shell.run(self.mysql_command(query))

    def snapshot_query(self) -> str:
        p = self.db_prefix
        return f"""
            SELECT p.ID, sku.meta_value, price.meta_value, p.post_status
            FROM {p}posts p
            JOIN {p}postmeta sku ON p.ID = sku.post_id AND sku.meta_key = '_sku'
            LEFT JOIN {p}postmeta price ON p.ID = price.post_id AND price.meta_key = '_price'
            WHERE p.post_type = 'product' AND p.post_status != 'trash' AND sku.meta_value != ''
        """

    def price_update_query(self, batch: List[UpdateOp], meta_key: str) -> str:
        cases = " ".join(f"WHEN {int(op.destination_id)} THEN '{int(op.price_local)}'" for op in batch)
        ids = ",".join(str(int(op.destination_id)) for op in batch)
        return (
            f"UPDATE {self.db_prefix}postmeta SET meta_value = CASE post_id {cases} END "
            f"WHERE meta_key = {escape_sql_literal(meta_key)} AND post_id IN ({ids})"
        )

    def title_update_query(self, batch: List[UpdateOp]) -> str:
        cases = " ".join(
            f"WHEN {int(op.destination_id)} THEN {escape_sql_literal(op.title)}" for op in batch
        )
        ids = ",".join(str(int(op.destination_id)) for op in batch)
        return (
            f"UPDATE {self.db_prefix}posts SET post_title = CASE ID {cases} END "
            f"WHERE ID IN ({ids})"
        )

    def create_command(self, op: CreateOp) -> str:
        args = [
            f"--name={shlex.quote(op.title)}",
            f"--sku={shlex.quote(op.external_key)}",
            f"--regular_price={int(op.price_local)}",
            "--type=simple",
            "--status=publish",
            "--manage_stock=true",
            "--stock_quantity=0",
            f"--categories={shlex.quote(json.dumps([{'id': self.category_id}]))}",
        ]
        if op.description:
            args.append(f"--description={shlex.quote(op.description)}")
        if op.image_url:
            args.append(f"--images={shlex.quote(json.dumps([{'src': op.image_url}]))}")
        args.extend(["--user=1", "--porcelain"])
        return f"cd {shlex.quote(self.wp_path)} && wp wc product create {' '.join(args)}"

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def load_snapshot(self) -> InventorySnapshot:
        snapshot = InventorySnapshot.from_tsv(self.mysql(self.snapshot_query()))
        logger.info("Loaded %d existing products from database", len(snapshot))
        return snapshot

    def apply_updates(self, batch: List[UpdateOp]) -> int:
        """Set both price meta fields for the chunk; titles too on full refreshes."""
        if not batch:
            return 0
        for meta_key in PRICE_META_KEYS:
            self.mysql(self.price_update_query(batch, meta_key))

        refreshed = [op for op in batch if op.is_full_refresh and op.title]
        if refreshed:
            self.mysql(self.title_update_query(refreshed))
        return len(batch)

    def apply_creates(self, batch: List[CreateOp], snapshot: InventorySnapshot) -> int:
        """
        Create items one by one via WP-CLI.

        A failing command (e.g. duplicate SKU) or channel error only
        forfeits that item; items created before it stay counted.
        """
        created = 0
        for op in batch:
            self._create_attempts += 1
            destination_id = self._create_one(op)
            if destination_id is not None:
                snapshot.register(op.external_key, ExistingRecord(
                    destination_id=destination_id,
                    current_price=Decimal(op.price_local),
                    status="publish",
                ))
                created += 1

            if self.create_pause_every and self._create_attempts % self.create_pause_every == 0:
                self._sleep(self.create_pause_seconds)
        return created

    def _create_one(self, op: CreateOp):
        """Run WP-CLI for one item; returns the new product id or None."""
        try:
            output = self.shell.run(self.create_command(op))
        except BackendError as e:
            self.warn(f"Create failed for {op.external_key}: {e}")
            return None

        lines = output.strip().splitlines()
        try:
            return int(lines[-1].strip())
        except (ValueError, IndexError):
            self.warn(f"Create for {op.external_key} returned no product id: {output[:100]!r}")
            return None

    def count_published(self) -> int:
        output = self.mysql(
            f"SELECT COUNT(*) FROM {self.db_prefix}posts "
            f"WHERE post_type = 'product' AND post_status = 'publish'"
        )
        return int(output.strip() or 0)
