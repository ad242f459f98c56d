from __future__ import annotations

import asyncio
import logging

from widetable_py import Table, get_table_config, instrument_client, parse_table_document
from widetable_py.testkit import InMemoryTablestoreClient

TABLES = """
tables:
  - name: user_events
    primary_keys:
      - { name: uid, type: INTEGER }
      - { name: ts, type: INTEGER }
    options:
      range_page_size: 4
      select_limit: 3
"""


async def main() -> None:
    cfg = get_table_config(parse_table_document(TABLES), "user_events")
    backend = InMemoryTablestoreClient({cfg.table_name: cfg.primary_keys})
    table = Table.from_config(cfg, client=instrument_client(backend))

    await table.insert({"uid": 1, "ts": 100, "kind": "login"})
    await table.update({"uid": 1, "ts": 100, "ip": "10.0.0.1"})
    print("get:", await table.get({"uid": 1, "ts": 100}))

    written = await table.batch_write(
        {
            "put": [{"uid": 1, "ts": ts, "kind": "click"} for ts in range(101, 110)],
            "insert": [{"uid": 1, "ts": 100, "kind": "duplicate"}],
            "delete": [{"uid": 1, "ts": 105}],
        }
    )
    print("batch:", {label: len(rows) for label, rows in written.items()})

    print("range:", [row["ts"] for row in await table.get_range({"uid": 1}, {"uid": 2})])
    print("select page 2:", await table.select({"uid": 1}, page=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main())
