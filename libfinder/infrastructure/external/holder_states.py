"""
Status tokens reported by the Japanese public-library holdings backends.

Tokens are matched exactly; anything unlisted, including an empty
status, means NOTHING.
"""

from typing import Mapping, Optional

from libfinder.domain.entities import HolderState

STATUS_TOKENS: Mapping[str, HolderState] = {
    "貸出可": HolderState.EXISTS,
    "蔵書あり": HolderState.EXISTS,
    "予約中": HolderState.RESERVED,
    "貸出中": HolderState.BORROWED,
    "館内のみ": HolderState.INPLACE,
}


def state_from_token(token: Optional[str]) -> HolderState:
    if token is None:
        return HolderState.default()
    return STATUS_TOKENS.get(token, HolderState.default())
