"""
MS Graph client setup with lazy initialization.

Used only for outbound mail; everything else talks to the local store.
"""

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient

from core.config import GRAPH_APP_ID, GRAPH_CLIENT_SECRET, GRAPH_TENANT_ID, MAIL_FROM

_graph_client: GraphServiceClient | None = None


def graph_configured() -> bool:
    """True when credentials and a sender mailbox are all set."""
    return all((GRAPH_TENANT_ID, GRAPH_APP_ID, GRAPH_CLIENT_SECRET, MAIL_FROM))


def get_graph_client() -> GraphServiceClient:
    """Get or create the MS Graph client (lazy initialization)."""
    global _graph_client
    if _graph_client is None:
        credential = ClientSecretCredential(
            tenant_id=GRAPH_TENANT_ID,
            client_id=GRAPH_APP_ID,
            client_secret=GRAPH_CLIENT_SECRET,
        )
        _graph_client = GraphServiceClient(credentials=credential)
    return _graph_client
