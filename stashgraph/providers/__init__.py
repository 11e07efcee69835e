from stashgraph.providers.base import GraphDataProvider
from stashgraph.providers.http import HttpGraphProvider
from stashgraph.providers.local import LocalGraphProvider

__all__ = ["GraphDataProvider", "HttpGraphProvider", "LocalGraphProvider"]
