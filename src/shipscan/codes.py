from __future__ import annotations

from typing import Iterable, Iterator, List, Set


class CodeCollection:
    """Insertion-ordered barcode list that never holds the same value twice."""

    def __init__(self, codes: Iterable[str] = ()) -> None:
        self._codes: List[str] = []
        self._seen: Set[str] = set()
        for code in codes:
            if code:
                self.add(code)

    def __contains__(self, code: object) -> bool:
        return code in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._codes)

    def __len__(self) -> int:
        return len(self._codes)

    def __getitem__(self, index: int) -> str:
        return self._codes[index]

    def add(self, code: str) -> bool:
        """Append ``code`` unless it is already present. Returns True when appended."""
        if code in self._seen:
            return False
        self._codes.append(code)
        self._seen.add(code)
        return True

    def pop(self, index: int) -> str:
        if not 0 <= index < len(self._codes):
            raise IndexError(index)
        code = self._codes.pop(index)
        self._seen.discard(code)
        return code

    def snapshot(self) -> List[str]:
        return list(self._codes)
