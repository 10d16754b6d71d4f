"""Pick the context variant for a criteria.

The emptiness check runs here, once, when the criteria is resolved. The
chosen context is then used for the lifetime of the query; contexts never
switch variant themselves.
"""

from __future__ import annotations

import logging

from docq.contextual.base import Context
from docq.contextual.none import NullContext
from docq.contextual.store import StoreContext
from docq.criteria import Criteria

logger = logging.getLogger(__name__)


def create_context(criteria: Criteria, storage) -> Context:
    """Return a NullContext for provably empty criteria, else a StoreContext"""
    if criteria.is_provably_empty():
        logger.debug("Criteria for %s is provably empty, skipping the store", criteria.entity)
        return NullContext(criteria)
    return StoreContext(criteria, storage)
