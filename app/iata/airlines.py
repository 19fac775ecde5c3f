from typing import Dict, Mapping, Optional
import csv
import json
import os
import re

# Marketing-style flight ident: two letter airline prefix + 1-5 digit number
IATA_IDENT_RE = re.compile(r"^([A-Z]{2})([0-9]{1,5})$")


class AirlineCodeMap:
    """Read-only IATA -> ICAO airline prefix table.

    Loaded once from a data asset (JSON, or CSV with iata/icao columns) so the
    table can grow without touching resolution logic. Lookups are O(1).
    """

    def __init__(self, codes: Optional[Mapping[str, str]] = None):
        self._codes: Dict[str, str] = {}
        self._names: Dict[str, str] = {}
        for iata, icao in (codes or {}).items():
            self._add(iata, icao)

    def _add(self, iata: str, icao: str, name: str = "") -> None:
        iata = str(iata or "").strip().upper()
        icao = str(icao or "").strip().upper()
        if not iata or not icao:
            return
        self._codes[iata] = icao
        if name:
            self._names[iata] = name

    @classmethod
    def from_file(cls, path: str) -> "AirlineCodeMap":
        table = cls()
        if os.path.splitext(path)[1].lower() == ".csv":
            table._load_from_csv(path)
        else:
            table._load_from_json(path)
        return table

    def _load_from_json(self, path: str) -> None:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        # {"AK": {"icao": "AXM", "name": "AirAsia"}} or {"AK": "AXM"}
        for iata, meta in data.get("airlines", data).items():
            if isinstance(meta, dict):
                self._add(iata, meta.get("icao", ""), meta.get("name", ""))
            else:
                self._add(iata, meta)

    def _load_from_csv(self, path: str) -> None:
        with open(path, newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                self._add(row.get("iata", ""), row.get("icao", ""), (row.get("name") or "").strip())

    def __len__(self) -> int:
        return len(self._codes)

    def __contains__(self, iata: str) -> bool:
        return str(iata).upper() in self._codes

    def icao_for(self, iata: str) -> Optional[str]:
        return self._codes.get(str(iata).upper())

    def name_for(self, iata: str) -> Optional[str]:
        return self._names.get(str(iata).upper())

    def translate_ident(self, ident: str) -> Optional[str]:
        """AK6322 -> AXM6322; None when the ident isn't IATA-shaped or the prefix is unknown."""
        m = IATA_IDENT_RE.match(ident or "")
        if not m:
            return None
        icao = self.icao_for(m.group(1))
        if not icao:
            return None
        return f"{icao}{m.group(2)}"
