"""Token bias for single-token classification replies."""

from __future__ import annotations

from typing import Sequence

import tiktoken

FALLBACK_ENCODING = "o200k_base"
LABEL_BIAS = 100


def encoding_for(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding(FALLBACK_ENCODING)


def build_logit_bias(labels: Sequence[object], model: str) -> dict[str, int]:
    """
    Maps the token of each label index ("0", "1", ...) to a strong positive bias
    so a one-token completion can only name a label number.
    """
    encoding = encoding_for(model)
    bias: dict[str, int] = {}
    for index in range(len(labels)):
        tokens = encoding.encode(str(index))
        if len(tokens) != 1:
            raise ValueError(f"Label index {index} does not encode to a single token for model {model!r}.")
        bias[str(tokens[0])] = LABEL_BIAS
    return bias
