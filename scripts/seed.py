import argparse, asyncio, json, logging
from typing import Any, Dict, List, Mapping

from bakeryops.db import Gateway, get_gateway
from bakeryops.services.catalog import slugify
from bakeryops.settings import setup_logging

logger = logging.getLogger("seed")


def load_seed(path: str) -> Dict[str, List[dict]]:
    """Read a {collection: [rows]} JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
        raise SystemExit(f"{path}: expected an object of collection -> list of rows")
    return data


async def seed(gateway: Gateway, data: Mapping[str, List[Mapping[str, Any]]]) -> Dict[str, int]:
    """Insert rows, or merge into rows whose id already exists. Returns counts per collection."""
    counts: Dict[str, int] = {}
    for table, rows in data.items():
        for row in rows:
            if table == "categories" and row.get("name") and not row.get("slug"):
                row = {**row, "slug": slugify(row["name"])}
            if row.get("id") and await gateway.get(table, row["id"]) is not None:
                await gateway.update(table, row["id"], {k: v for k, v in row.items() if k != "id"})
            else:
                await gateway.insert(table, row)
        counts[table] = len(rows)
        logger.info("Seeded %d rows into %s", len(rows), table)
    return counts


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Load catalog/partner fixtures into the configured store")
    ap.add_argument('--path', required=True, help='JSON file: {"products": [...], "categories": [...]}')
    args = ap.parse_args()
    setup_logging()
    counts = asyncio.run(seed(get_gateway(), load_seed(args.path)))
    print(f"Seeded {sum(counts.values())} rows across {len(counts)} collections")
