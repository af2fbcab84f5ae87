"""
Post-commit side effects.

Once the authoritative write has happened, notifications and audit entries
run as an ordered list of independent effects. Each one is attempted even if
an earlier one failed, and none of them can undo the commit.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PostCommitEffect:
    """A named best-effort action. A falsy result counts as failure."""
    name: str
    action: Callable[[], Awaitable[Optional[object]]]


async def run_post_commit_effects(effects: List[PostCommitEffect], context: str = "") -> Dict[str, bool]:
    """Run effects in order. Returns name -> succeeded."""
    results: Dict[str, bool] = {}
    for effect in effects:
        try:
            outcome = await effect.action()
        except Exception as e:
            logger.error(f"Post-commit effect '{effect.name}' failed {context}: {e}", exc_info=True)
            results[effect.name] = False
            continue
        results[effect.name] = bool(outcome)
        if not results[effect.name]:
            logger.warning(f"Post-commit effect '{effect.name}' did not complete {context}")
    return results
