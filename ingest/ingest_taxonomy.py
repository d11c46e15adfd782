import os
import json
import logging
from collections import OrderedDict
from typing import Dict, List

from infra.db.session import init_db
from infra.repositories.taxonomy_repository import TaxonomyRepository

log = logging.getLogger("ingest_taxonomy")

REQUIRED_KEYS = ("category", "skill", "competency")


def read_records(path: str) -> List[Dict]:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Missing taxonomy file: {path}")
    with open(path, encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError("Taxonomy file must hold a JSON array of records")
    return records


def group_records(records: List[Dict]) -> "OrderedDict[str, OrderedDict[str, List[str]]]":
    """category -> skill -> competencies, in first-seen order, duplicates removed."""
    grouped: "OrderedDict[str, OrderedDict[str, List[str]]]" = OrderedDict()
    for i, rec in enumerate(records):
        if not isinstance(rec, dict) or not all(str(rec.get(k) or "").strip() for k in REQUIRED_KEYS):
            log.warning(f"Skipping record #{i}: needs non-empty {', '.join(REQUIRED_KEYS)}")
            continue
        category, skill, competency = (str(rec[k]).strip() for k in REQUIRED_KEYS)
        competencies = grouped.setdefault(category, OrderedDict()).setdefault(skill, [])
        if competency not in competencies:
            competencies.append(competency)
    return grouped


def ingest_taxonomy(path: str, repo: TaxonomyRepository | None = None) -> Dict[str, int]:
    repo = repo or TaxonomyRepository()
    grouped = group_records(read_records(path))
    counts = {"categories": 0, "skills": 0, "competencies": 0}
    for category, skills in grouped.items():
        log.info(f"Processing category: {category}")
        counts["categories"] += 1
        for skill, competencies in skills.items():
            counts["skills"] += 1
            for competency in competencies:
                repo.upsert_path(category, skill, competency)
                counts["competencies"] += 1
    log.info(
        f"Ingested {counts['categories']} categories, {counts['skills']} skills, "
        f"{counts['competencies']} competencies from {os.path.basename(path)}")
    return counts


if __name__ == "__main__":
    import argparse
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    parser = argparse.ArgumentParser(
        description="Load a category/skill/competency taxonomy into the database")
    parser.add_argument("--file", required=True,
                        help="Path to a JSON array of {category, skill, competency} records")
    args = parser.parse_args()
    init_db()
    ingest_taxonomy(args.file)
