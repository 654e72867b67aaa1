"""HTTP client that executes deferred queries and writes staged attachments."""

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import aiohttp
import backoff
import pandas as pd
from tqdm import tqdm

from couchkit.config.api import APIConfig
from couchkit.core.exceptions import CouchRequestError, InvalidArgumentError
from couchkit.query.deferred import DeferredQuery
from couchkit.query.results import CouchList
from couchkit.query.translator import FindRequestTranslator
from couchkit.types.attachments import AttachmentStage
from couchkit.utils.file_system import FileSystem, LocalFileSystem

from .error_handling import categorize_error, is_retryable
from .multipart import build_document_body, read_upload_contents, uploads_to_send, write_multipart

_module_logger = logging.getLogger(__name__)


def _backoff_handler(details):
    """Handler for logging backoff attempts with error categorization."""
    exception = details["exception"]
    error_category = categorize_error(exception)
    _module_logger.warning(
        f"Backing off {details['wait']:.1f}s after {error_category.value} error "
        f"(attempt {details['tries']}/{APIConfig.MAX_RETRIES}): {exception}"
    )


def _give_up(exception: Exception) -> bool:
    return not is_retryable(exception)


class CouchClient:
    """Client for running Mango queries and saving attachments on a CouchDB server."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth: Optional[aiohttp.BasicAuth] = None,
        logger_obj: Optional[logging.Logger] = None,
        file_system: Optional[FileSystem] = None,
        translator: Optional[FindRequestTranslator] = None,
    ):
        self.logger = logger_obj or _module_logger
        self.config = APIConfig()
        self.base_url = (base_url or self.config.BASE_URL).rstrip("/")
        self.auth = auth
        self.file_system = file_system or LocalFileSystem()
        self.translator = translator or FindRequestTranslator()

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(auth=self.auth)

    @staticmethod
    async def _error_from_response(resp: aiohttp.ClientResponse, url: str) -> CouchRequestError:
        try:
            payload = await resp.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            payload = None
        if not isinstance(payload, dict):
            payload = {}
        return CouchRequestError(resp.status, payload.get("error"), payload.get("reason"), url)

    @backoff.on_exception(
        backoff.expo,
        (aiohttp.ClientError, asyncio.TimeoutError, CouchRequestError),
        max_tries=APIConfig.MAX_RETRIES,
        giveup=_give_up,
        on_backoff=_backoff_handler,
        jitter=backoff.full_jitter,
        base=APIConfig.RETRY_BASE_DELAY,
        max_value=APIConfig.RETRY_MAX_DELAY,
    )
    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        data_factory: Optional[Callable[[], Any]] = None,
        raw: bool = False,
    ) -> Any:
        """Send one request with retries. ``data_factory`` rebuilds the body per attempt."""
        kwargs: Dict[str, Any] = {"timeout": aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT)}
        if json_body is not None:
            kwargs["json"] = json_body
        if data_factory is not None:
            kwargs["data"] = data_factory()

        try:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    raise await self._error_from_response(resp, url)
                if raw:
                    return await resp.read()
                return await resp.json(content_type=None)
        except Exception as e:
            error_category = categorize_error(e)
            self.logger.error(f"{method} {url} failed with {error_category.value} error: {e}")
            raise

    async def find(self, query: DeferredQuery) -> CouchList:
        """Execute ``query`` once and return a single page of results."""
        body = self.translator.translate(query)
        database = self.translator.source_of(query).database
        url = self.config.get_find_url(database, self.base_url)

        async with self._session() as session:
            data = await self._send(session, "POST", url, json_body=body)

        result = CouchList.from_response(data)
        if result.warning:
            self.logger.warning(f"Query on '{database}' returned a warning: {result.warning}")
        self.logger.debug(f"Query on '{database}' returned {len(result)} document(s)")
        return result

    async def to_list(self, query: DeferredQuery) -> List[Dict[str, Any]]:
        """Execute ``query`` and return only the documents."""
        return (await self.find(query)).docs

    async def find_all(self, query: DeferredQuery, max_pages: Optional[int] = None) -> CouchList:
        """
        Follow bookmarks until the server returns an empty page.

        Args:
            query: The query to execute; its own directives are kept on every page.
                Without a ``limit`` each page asks for ``APIConfig.FIND_PAGE_SIZE`` documents,
                and ``skip`` is only sent with the first page.
            max_pages: Optional upper bound on the number of requests.

        Returns:
            All documents collected, with the last bookmark seen.
        """
        source = self.translator.source_of(query)
        database = source.database
        if source.limit is None:
            source = dataclasses.replace(source, limit=self.config.FIND_PAGE_SIZE)
        # skip applies to the first page only; bookmarks carry the position afterwards
        next_pages = query.rebase(dataclasses.replace(source, skip=None))
        collected = CouchList()
        page_query = query.rebase(source)
        pages = 0

        with tqdm(desc=f"Fetching {database} (bookmark)", unit=" docs", leave=False) as pbar:
            while max_pages is None or pages < max_pages:
                page = await self.find(page_query)
                pages += 1
                if not page.docs:
                    collected.bookmark = page.bookmark or collected.bookmark
                    break

                collected.extend(page)
                pbar.update(len(page.docs))

                if not page.bookmark:
                    break
                page_query = next_pages.use_bookmark(page.bookmark)

        self.logger.info(f"Fetched {len(collected):,} documents from '{database}' in {pages} page(s)")
        return collected

    async def find_dataframe(self, query: DeferredQuery, max_pages: Optional[int] = None) -> pd.DataFrame:
        """Execute ``query`` across all pages and return the documents as a DataFrame."""
        return (await self.find_all(query, max_pages=max_pages)).to_dataframe()

    async def get_document(self, database: str, doc_id: str) -> Dict[str, Any]:
        url = self.config.get_document_url(database, doc_id, self.base_url)
        async with self._session() as session:
            return await self._send(session, "GET", url)

    async def get_attachments(self, database: str, doc_id: str) -> AttachmentStage:
        """Load a document and hydrate a stage from its attachment metadata."""
        document = await self.get_document(database, doc_id)
        return AttachmentStage.from_server(document.get("_attachments"), file_system=self.file_system)

    async def save_attachments(self, database: str, document: Dict[str, Any], stage: AttachmentStage) -> Dict[str, Any]:
        """
        Write ``document`` with the attachments described by ``stage``.

        Uploads travel in a ``multipart/related`` body; without uploads the
        document is sent as JSON. After the server accepts the revision the
        stage is acknowledged: deleted records are removed and uploaded ones
        lose their pending content. ``document['_rev']`` is updated in place.
        A failed write leaves the stage untouched so it can be retried.

        Args:
            database: Target database name.
            document: The document to write; must carry an ``_id``.
            stage: The staged attachments of the document.

        Returns:
            The server response, with ``id`` and ``rev``.
        """
        doc_id = document.get("_id") if document is not None else None
        if not doc_id:
            raise InvalidArgumentError("Document must have an _id to save attachments.", argument="document")

        url = self.config.get_document_url(database, doc_id, self.base_url)
        uploads = uploads_to_send(stage)
        deletions = stage.pending_deletions()
        sent = [(record, record.version) for record in stage.pending_additions()]
        removed = [(record, record.version) for record in deletions]

        # Body is fixed before the request; later staging goes into the next write
        if uploads:
            contents = read_upload_contents(uploads, stage.file_system)
            lengths = {name: len(content) for name, content in contents.items()}
            body = build_document_body(document, stage, lengths)
        else:
            body = build_document_body(document, stage)

        async with self._session() as session:
            if uploads:
                response = await self._send(
                    session, "PUT", url, data_factory=lambda: write_multipart(body, uploads, contents)
                )
            else:
                response = await self._send(session, "PUT", url, json_body=body)

        for record, version in removed:
            if stage.holds(record, version):
                stage.remove(record.name)
        for record, version in sent:
            if stage.holds(record, version):
                stage.mark_uploaded(record.name)

        if response.get("rev"):
            document["_rev"] = response["rev"]
        self.logger.info(
            f"Saved '{doc_id}' in '{database}': {len(uploads)} upload(s), {len(deletions)} deletion(s)"
        )
        return response

    async def download_attachment(
        self, database: str, doc_id: str, name: str, destination: Union[str, Path]
    ) -> Path:
        """Download one attachment; ``destination`` may be a file path or an existing directory."""
        url = self.config.get_attachment_url(database, doc_id, name, self.base_url)
        target = Path(destination)
        if target.is_dir():
            file_name = Path(name).name
            if file_name in ("", ".", ".."):
                raise InvalidArgumentError(f"Attachment name has no file name: {name}", argument="name")
            target = target / file_name

        async with self._session() as session:
            content = await self._send(session, "GET", url, raw=True)

        target.write_bytes(content)
        self.logger.debug(f"Downloaded attachment '{name}' of '{doc_id}' to {target}")
        return target
