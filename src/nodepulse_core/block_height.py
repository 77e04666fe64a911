from __future__ import annotations

import re

from nodepulse_core.models import DEFAULT_RAW_HEX, U64_MAX, BlockHeightResult
from nodepulse_core.rpc import DEFAULT_METHOD, NodeRpc, RpcProtocolError

_HEX_DIGITS_RE = re.compile(r"\+?[0-9a-fA-F]+")


def parse_hex_quantity(raw: str) -> int | None:
    """Parse ``0x``-prefixed (or bare) hex into an unsigned 64-bit int.

    Every leading lowercase ``0x`` is dropped, so ``"0x0x10"`` reads as 16.
    The digits may carry a single leading ``+``. Whitespace, ``0X``,
    underscores and minus signs are rejected, as is anything above 64 bits.
    Returns None when the text does not parse.
    """
    text = raw
    while text.startswith("0x"):
        text = text[2:]
    if not _HEX_DIGITS_RE.fullmatch(text):
        return None
    value = int(text, 16)
    if value > U64_MAX:
        return None
    return value


class BlockHeightQuery:
    def __init__(
        self,
        rpc: NodeRpc,
        *,
        chain_label: str,
        method: str = DEFAULT_METHOD,
    ) -> None:
        self.rpc = rpc
        self.chain_label = chain_label
        self.method = method

    def _fallback(self) -> BlockHeightResult:
        return BlockHeightResult(
            raw_hex=DEFAULT_RAW_HEX,
            value=0,
            chain_label=self.chain_label,
            degraded=True,
        )

    def current_height(self) -> BlockHeightResult:
        """Fetch the node's block height.

        A node that answers badly yields the ``0x0`` fallback with
        ``degraded`` set. ``RpcTransportError`` is not caught: callers
        decide how to report a node that does not answer at all. Nothing
        is logged here; callers own reporting of degraded results.
        """
        try:
            response = self.rpc.call(self.method)
        except RpcProtocolError:
            return self._fallback()

        if response.is_error or not isinstance(response.result, str):
            return self._fallback()

        raw_hex = response.result
        value = parse_hex_quantity(raw_hex)
        if value is None:
            return BlockHeightResult(
                raw_hex=raw_hex,
                value=0,
                chain_label=self.chain_label,
                degraded=True,
            )
        return BlockHeightResult(raw_hex=raw_hex, value=value, chain_label=self.chain_label)
