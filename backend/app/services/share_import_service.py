import logging
from typing import Any, Dict, Optional

import httpx

from app.services.import_plan import build_import_plan
from app.services.recipe_detector import detect_recipes
from app.services.share_errors import (
    ShareExtractionError,
    ShareFetchError,
    ShareLinkValidationError,
    ShareParseError,
)
from app.services.share_graph import resolve_graph
from app.services.share_payload import collect_payload_candidates, parse_conversation_array
from app.utils.share_link import share_id_from_url, validate_share_url
from config import SHARE_FETCH_TIMEOUT_SECONDS, SHARE_MAX_RESPONSE_BYTES, SHARE_USER_AGENT

logger = logging.getLogger(__name__)


class ShareImportService:
    """
    Import preview for ChatGPT share links:
    validate -> fetch -> extract payload -> resolve graph -> detect recipes.

    Only the fetch does I/O. One request, no retry.
    """

    def __init__(
        self,
        timeout: float = SHARE_FETCH_TIMEOUT_SECONDS,
        max_bytes: int = SHARE_MAX_RESPONSE_BYTES,
        user_agent: str = SHARE_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.user_agent = user_agent
        self.transport = transport

    async def fetch_share_page(self, url: str) -> str:
        """
        Downloads the share page. Redirects are not followed and the body is
        capped at max_bytes.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=False,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code == 404:
                        raise ShareFetchError("Share link not found or expired.", status_code=404)
                    if response.status_code != 200:
                        raise ShareFetchError(f"Share link returned {response.status_code}.")

                    declared = response.headers.get("Content-Length")
                    if declared and declared.isdigit() and int(declared) > self.max_bytes:
                        raise ShareFetchError("Share link response is too large.")

                    body = bytearray()
                    async for chunk in response.aiter_bytes():
                        body.extend(chunk)
                        if len(body) > self.max_bytes:
                            raise ShareFetchError("Share link response is too large.")

                    encoding = response.charset_encoding or "utf-8"
        except httpx.TimeoutException as e:
            raise ShareFetchError("Share link request timed out.", status_code=504) from e
        except httpx.HTTPError as e:
            logger.warning(f"[ShareImport] Network error: {type(e).__name__}")
            raise ShareFetchError("Could not load share link.") from e

        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    def parse_share_page(self, html: str) -> Dict[str, Any]:
        """
        Extracts the conversation from the page HTML.
        Returns {"title": str, "messages": [{"role", "content"}]}.
        """
        if not html or not isinstance(html, str) or not html.strip():
            raise ShareExtractionError("Empty response from share link.")

        candidates = collect_payload_candidates(html)
        if not candidates:
            raise ShareExtractionError("Could not read conversation data from share link.")

        for i, candidate in enumerate(candidates):
            parsed = parse_conversation_array(candidate)
            if parsed:
                arr, strategy = parsed
                logger.debug(f"[ShareImport] Parsed payload candidate {i} via '{strategy}' ({len(candidate)} chars)")
                return resolve_graph(arr, candidate)

        first = candidates[0]
        logger.warning(
            f"[ShareImport] JSON parse failed for {len(candidates)} candidate(s), "
            f"first length={len(first)} first char={first[:1]!r}"
        )
        raise ShareParseError("Invalid conversation data from share link.")

    async def preview(self, url: str) -> Dict[str, Any]:
        """
        Full pipeline for one share link.
        Returns {"title": str, "candidates": [import plan items]}.
        """
        validation = validate_share_url(url)
        if not validation["valid"]:
            raise ShareLinkValidationError(validation["error"])

        share_id = share_id_from_url(url)
        html = await self.fetch_share_page(url.strip())
        conversation = self.parse_share_page(html)
        candidates = detect_recipes(conversation["messages"])
        plan = build_import_plan(candidates)

        logger.info(
            f"[ShareImport] share={share_id} messages={len(conversation['messages'])} "
            f"candidates={len(plan)}"
        )
        return {"title": conversation["title"], "candidates": plan}


share_import_service = ShareImportService()
