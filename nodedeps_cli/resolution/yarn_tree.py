"""Extract the dependency tree from ``yarn list --json`` output.

yarn prints one JSON document per line (activity, warnings, info...). Exactly
one of them is the tree document we want: ``{"type":"tree","data":{"trees":[...]}}``.
"""

import json
import logging
import re

from ..errors import MalformedOutputError
from .models import RawTreeNode

logger = logging.getLogger(__name__)

TREE_LINE = re.compile(r'^\{"type":"tree".*$', re.MULTILINE)


def parse_yarn_tree(raw: str) -> list[RawTreeNode]:
    """Parse the top-level tree nodes out of raw yarn output.

    Args:
        raw: Complete stdout of ``yarn list --prod --json``

    Returns:
        Top-level nodes in document order

    Raises:
        MalformedOutputError: Zero or several tree lines, invalid JSON, or a
            document without ``data.trees``
    """
    matches = TREE_LINE.findall(raw)
    if len(matches) != 1:
        raise MalformedOutputError(
            f"Could not parse result of `yarn list --json`: expected one tree document, found {len(matches)}"
        )

    line = matches[0].rstrip("\r")
    try:
        document = json.loads(line)
        trees = document["data"]["trees"]
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"Could not parse result of `yarn list --json`: {e}") from e
    except (KeyError, TypeError) as e:
        raise MalformedOutputError("Could not parse result of `yarn list --json`: missing data.trees") from e

    if not isinstance(trees, list):
        raise MalformedOutputError("Could not parse result of `yarn list --json`: data.trees is not a list")

    try:
        nodes = [RawTreeNode.from_dict(tree) for tree in trees]
    except (KeyError, TypeError, AttributeError) as e:
        raise MalformedOutputError(f"Could not parse result of `yarn list --json`: bad tree node ({e})") from e

    logger.debug(f"[yarn] parsed {len(nodes)} top-level trees")
    return nodes
