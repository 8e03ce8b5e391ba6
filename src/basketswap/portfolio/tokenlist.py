"""Static token list used to add zero-balance assets to a target allocation."""

import json
from pathlib import Path
from typing import Iterable, Optional

import structlog

from basketswap.models import TokenListEntry

logger = structlog.get_logger(__name__)


class TokenList:
    """Alphabetically ordered token list with substring search."""

    def __init__(self, tokens: list[TokenListEntry], chain_id: Optional[int] = None):
        if chain_id is not None:
            tokens = [t for t in tokens if t.chain_id in (None, chain_id)]
        self._tokens = sorted(tokens, key=lambda t: t.symbol.lower())

    @classmethod
    def load(cls, path: Path, chain_id: Optional[int] = None) -> "TokenList":
        """Load a ``{"tokens": [...]}`` token-list JSON file."""
        with open(path) as f:
            raw = json.load(f)
        tokens = [TokenListEntry.model_validate(t) for t in raw.get("tokens", [])]
        logger.info("tokenlist.loaded", path=str(path), tokens=len(tokens))
        return cls(tokens, chain_id=chain_id)

    def __len__(self) -> int:
        return len(self._tokens)

    def search(self, query: str = "", exclude: Iterable[str] = ()) -> list[TokenListEntry]:
        """Tokens whose symbol, name or address contains ``query``.

        Matching is case-insensitive; addresses in ``exclude`` (already held)
        are left out.
        """
        excluded = {a.lower() for a in exclude}
        needle = query.strip().lower()

        results = []
        for token in self._tokens:
            if token.address.lower() in excluded:
                continue
            if not needle or (
                needle in token.symbol.lower()
                or needle in token.name.lower()
                or needle in token.address.lower()
            ):
                results.append(token)
        return results

    def get(self, address: str) -> Optional[TokenListEntry]:
        key = address.lower()
        for token in self._tokens:
            if token.address.lower() == key:
                return token
        return None
