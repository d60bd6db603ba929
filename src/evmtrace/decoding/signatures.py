"""
Function signature lookups in public signature databases.

Used to name calls for which no ABI is loaded. Signatures found this way
have no output types, so return data of such calls stays raw.
"""

from typing import Dict, Optional

import requests

from evmtrace.utils.exceptions import AbiParseError
from evmtrace.utils.logging import get_logger

from .abi import Function

logger = get_logger('decoding.signatures')

OPENCHAIN_URL = "https://api.openchain.xyz/signature-database/v1/lookup"
FOURBYTE_URL = "https://www.4byte.directory/api/v1/signatures/"


class SignatureLookup:
    """
    Looks up text signatures for 4-byte selectors.

    OpenChain is tried first since it filters junk entries; 4byte.directory is
    the fallback. Results (including misses) are cached per instance.
    """

    def __init__(self, timeout: float = 5, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: Dict[str, Optional[str]] = {}

    def lookup_signature(self, selector: bytes) -> Optional[str]:
        key = '0x' + bytes(selector).hex()
        if key not in self._cache:
            self._cache[key] = self._lookup_openchain(key) or self._lookup_4byte(key)
        return self._cache[key]

    def lookup_function(self, selector: bytes) -> Optional[Function]:
        signature = self.lookup_signature(selector)
        if signature is None:
            return None
        try:
            return Function.from_signature(signature)
        except AbiParseError as e:
            logger.debug(f"Ignoring unparsable signature {signature!r}: {e}")
            return None

    def _lookup_openchain(self, selector: str) -> Optional[str]:
        try:
            response = self.session.get(
                OPENCHAIN_URL, params={'function': selector}, timeout=self.timeout
            )
            if response.status_code != 200:
                return None
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"OpenChain lookup for {selector} failed: {e}")
            return None

        result = data.get('result') or {}
        signatures = (result.get('function') or {}).get(selector) or []
        if signatures:
            return signatures[0]['name']
        return None

    def _lookup_4byte(self, selector: str) -> Optional[str]:
        try:
            response = self.session.get(
                FOURBYTE_URL, params={'hex_signature': selector}, timeout=self.timeout
            )
            if response.status_code != 200:
                return None
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"4byte lookup for {selector} failed: {e}")
            return None

        results = data.get('results') or []
        if not results:
            return None
        # Lower id = older entry, which is the least likely to be a collision
        return sorted(results, key=lambda x: x.get('id', 0))[0]['text_signature']
