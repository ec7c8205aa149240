"""
Catalog Sync

Reconciles the TCGCSV card feed against a WooCommerce store: new singles
are created and prices are refreshed in local currency at the daily rate.

Modules:
    common     - Shared utilities (config loader, logging, CSV/text helpers, pacing)
    models     - Data models (catalog entries, operations, run state)
    feed       - Feed client and currency rate provider
    reconcile  - Row normalization and create/update/skip decisions
    store      - Inventory snapshot, batch dispatch and store backends
    sync       - Run coordinator and progress publisher
    web        - Flask control surface
"""
