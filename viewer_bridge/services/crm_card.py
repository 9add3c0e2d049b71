"""
CRM card payload builder.

HubSpot renders legacy CRM cards from a ``results`` list; each PDF gets an
IFRAME action pointing at the viewer with a freshly minted token.
"""
import logging
from urllib.parse import quote, urlencode

from viewer_bridge.hubspot import HubSpotClient, HubSpotFile
from viewer_bridge.models import CardAction, CardProperty, CardResult, CrmCardResponse
from viewer_bridge.tokens import ViewerTokenStore

logger = logging.getLogger(__name__)


def no_contact_card() -> CrmCardResponse:
    return CrmCardResponse(results=[
        CardResult(objectId=0, title="No Contact ID", properties=[])
    ])


def error_card(message: str) -> CrmCardResponse:
    return CrmCardResponse(results=[
        CardResult(
            objectId=0,
            title="Error Loading Documents",
            properties=[CardProperty(label="Error", value=message)],
        )
    ])


def _object_id(contact_id: str) -> int:
    try:
        return int(contact_id)
    except ValueError:
        return 0


class CrmCardBuilder:
    """Builds the document card for a contact record."""

    def __init__(
        self,
        hubspot: HubSpotClient,
        token_store: ViewerTokenStore,
        public_base_url: str,
        max_files: int = 10,
        iframe_width: int = 1200,
        iframe_height: int = 800,
    ):
        self._hubspot = hubspot
        self._tokens = token_store
        self._public_base_url = public_base_url.rstrip("/")
        self._max_files = max_files
        self._iframe_width = iframe_width
        self._iframe_height = iframe_height

    async def build(self, contact_id: str) -> CrmCardResponse:
        """
        Build the card for ``contact_id``.

        Raises:
            HubSpotAPIError: If the file search fails
        """
        all_files = await self._hubspot.search_files()
        pdfs = [
            f for f in all_files
            if f.id and f.name and (f.extension or "").lower() == "pdf"
        ][:self._max_files]

        count = len(pdfs)
        title = f"{count} Document{'' if count == 1 else 's'}"

        if pdfs:
            properties = [CardProperty(label=f.name, value=f.name) for f in pdfs]
        else:
            properties = [CardProperty(label="No documents", value="No PDF files found")]

        return CrmCardResponse(results=[
            CardResult(
                objectId=_object_id(contact_id),
                title=title,
                properties=properties,
                actions=[self._view_action(f) for f in pdfs],
            )
        ])

    def viewer_url(self, hs_file: HubSpotFile, token: str) -> str:
        query = urlencode({"filename": hs_file.name, "token": token}, quote_via=quote)
        return f"{self._public_base_url}/viewer/{quote(hs_file.id, safe='')}?{query}"

    def _view_action(self, hs_file: HubSpotFile) -> CardAction:
        token = self._tokens.mint(hs_file.id, hs_file.name)
        return CardAction(
            type="IFRAME",
            width=self._iframe_width,
            height=self._iframe_height,
            uri=self.viewer_url(hs_file, token),
            label=f"View {hs_file.name}",
        )
