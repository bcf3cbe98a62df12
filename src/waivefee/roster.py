from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import List, Tuple, Union

from .models import Family, Sibling


ROSTER_COLUMNS = ["family_code", "older_name", "older_grade", "younger_name", "younger_grade"]

OLDER_NAMES = [
    "Alex Johnson", "Emma Smith", "James Brown", "Sophie Davis", "Michael Wilson",
    "Olivia Garcia", "Daniel Martinez", "Isabella Rodriguez", "William Anderson", "Charlotte Taylor",
    "Benjamin Thomas", "Amelia Jackson", "Lucas White", "Mia Harris", "Henry Martin",
]
YOUNGER_NAMES = [
    "Ethan Johnson", "Ava Smith", "Liam Brown", "Grace Davis", "Noah Wilson",
    "Chloe Garcia", "Mason Martinez", "Lily Rodriguez", "Oliver Anderson", "Zoe Taylor",
    "Jacob Thomas", "Hannah Jackson", "Alexander White", "Emily Harris", "Samuel Martin",
]


def family_code_for(position: int) -> str:
    return f"FAM{position:03d}"


def sample_roster(count: int = 25) -> List[Family]:
    """Deterministic demo roster: FAM001..FAMnnn with cycling sibling names."""
    families: List[Family] = []
    for idx in range(count):
        families.append(
            Family(
                family_code=family_code_for(idx + 1),
                position=idx + 1,
                older=Sibling(name=OLDER_NAMES[idx % len(OLDER_NAMES)], grade=f"Grade {6 + idx % 6}"),
                younger=Sibling(name=YOUNGER_NAMES[idx % len(YOUNGER_NAMES)], grade=f"Grade {3 + idx % 3}"),
            )
        )
    return families


def parse_roster_csv(content: str) -> Tuple[List[str], List[Family]]:
    errors: List[str] = []
    families: List[Family] = []
    reader = csv.DictReader(io.StringIO(content))
    if not reader.fieldnames:
        return ["CSV has no header row"], []
    missing = [name for name in ROSTER_COLUMNS if name not in reader.fieldnames]
    if missing:
        return [f"Missing columns: {', '.join(missing)}"], []

    seen = set()
    for idx, row in enumerate(reader, start=2):
        try:
            values = {name: (row.get(name) or "").strip() for name in ROSTER_COLUMNS}
            blank = [name for name, value in values.items() if not value]
            if blank:
                raise ValueError(f"blank value for {', '.join(blank)}")
            if values["family_code"] in seen:
                raise ValueError(f"duplicate family_code {values['family_code']}")
            seen.add(values["family_code"])
            families.append(
                Family(
                    family_code=values["family_code"],
                    position=len(families) + 1,
                    older=Sibling(name=values["older_name"], grade=values["older_grade"]),
                    younger=Sibling(name=values["younger_name"], grade=values["younger_grade"]),
                )
            )
        except ValueError as exc:
            errors.append(f"Row {idx}: {exc}")
    return errors, families


def load_roster(path: Union[str, Path]) -> List[Family]:
    content = Path(path).read_text(encoding="utf-8-sig")
    errors, families = parse_roster_csv(content)
    if errors:
        raise ValueError(f"Invalid roster {path}: " + "; ".join(errors))
    return families
