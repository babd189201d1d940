"""Document store: normalized, immutable texts keyed by identity."""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import chardet

from cheat_check.errors import DuplicateIdentity, UnreadableDocument
from cheat_check.models import CheckSettings

logger = logging.getLogger(__name__)

RawText = Union[str, bytes, None]

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class Document:
    """A loaded submission.

    ``content`` is ``None`` when the source could not be read or decoded;
    ``unreadable_reason`` then says why.
    """
    identity: str
    content: Optional[str]
    unreadable_reason: Optional[str] = None

    @property
    def readable(self) -> bool:
        return self.content is not None

    def text(self) -> str:
        """Return the content or raise UnreadableDocument."""
        if self.content is None:
            raise UnreadableDocument(self.identity, self.unreadable_reason or "no content")
        return self.content


def normalize_text(raw: str, case_fold: bool = False, collapse_whitespace: bool = False) -> str:
    """Apply the normalization policy. Line endings are always unified."""
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    if case_fold:
        text = text.casefold()
    if collapse_whitespace:
        text = _WHITESPACE_RUN.sub(" ", text).strip()
    return text


def decode_bytes(raw: bytes, identity: str = "<bytes>") -> str:
    """Decode raw file bytes, guessing the encoding with chardet."""
    if not raw:
        return ""
    if raw.startswith(codecs.BOM_UTF8):
        encoding = "utf-8-sig"
    elif raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        encoding = "utf-16"
    else:
        encoding = chardet.detect(raw).get("encoding") or "utf-8"
    logger.debug(f"Detected encoding for {identity}: {encoding}")
    try:
        return raw.decode(encoding)
    except LookupError as e:
        raise UnreadableDocument(identity, f"unknown encoding {encoding!r}") from e
    except UnicodeDecodeError as e:
        raise UnreadableDocument(identity, f"cannot decode as {encoding}: {e.reason}") from e


class DocumentStore:
    """Insertion-ordered, identity-unique collection of documents.

    Documents are normalized on the way in and never change afterwards, so a
    populated store can be shared with any number of workers without locks.
    """

    def __init__(self, case_fold: bool = False, collapse_whitespace: bool = False):
        self.case_fold = case_fold
        self.collapse_whitespace = collapse_whitespace
        self._documents: Dict[str, Document] = {}

    @classmethod
    def from_settings(cls, settings: Optional[CheckSettings]) -> "DocumentStore":
        if settings is None:
            return cls()
        return cls(case_fold=settings.case_fold, collapse_whitespace=settings.collapse_whitespace)

    def normalize(self, raw: str) -> str:
        return normalize_text(raw, self.case_fold, self.collapse_whitespace)

    def load(self, identity: str, raw: RawText) -> Document:
        """Normalize ``raw`` and store it under ``identity``.

        Bytes are decoded first. Content that cannot be decoded is kept as an
        unreadable document; comparisons touching it fail individually.
        """
        self._check_new(identity)
        if raw is None:
            return self._insert(Document(identity, None, "no content"))
        if isinstance(raw, bytes):
            try:
                raw = decode_bytes(raw, identity)
            except UnreadableDocument as e:
                logger.warning(f"{identity} is unreadable: {e.reason}")
                return self._insert(Document(identity, None, e.reason))
        return self._insert(Document(identity, self.normalize(raw)))

    def mark_unreadable(self, identity: str, reason: str) -> Document:
        """Store a placeholder for a source that could not be read."""
        self._check_new(identity)
        logger.warning(f"{identity} is unreadable: {reason}")
        return self._insert(Document(identity, None, reason))

    def _check_new(self, identity: str) -> None:
        if not identity:
            raise ValueError("Document identity must be a non-empty string")
        if identity in self._documents:
            raise DuplicateIdentity(identity)

    def _insert(self, document: Document) -> Document:
        self._documents[document.identity] = document
        return document

    def get(self, identity: str) -> Document:
        return self._documents[identity]

    def all(self) -> List[Document]:
        return list(self._documents.values())

    def without_template(self, template: str) -> Tuple["DocumentStore", List[str]]:
        """Drop every document whose content equals the normalized template.

        Returns the filtered store and the skipped identities in load order.
        """
        reference = self.normalize(template)
        kept = DocumentStore(self.case_fold, self.collapse_whitespace)
        skipped = []
        for document in self._documents.values():
            if document.readable and document.content == reference:
                skipped.append(document.identity)
            else:
                kept._insert(document)
        if skipped:
            logger.info(f"Skipping {len(skipped)} document(s) identical to the template")
        return kept, skipped

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(list(self._documents.values()))

    def __contains__(self, identity: object) -> bool:
        return identity in self._documents

    def __repr__(self) -> str:
        return f"DocumentStore({len(self)} documents)"


def load_documents(
    sources: Union[Mapping[str, RawText], Iterable[Tuple[str, RawText]]],
    settings: Optional[CheckSettings] = None,
) -> DocumentStore:
    """Build a document store from identity -> raw text, in input order.

    ``sources`` is a mapping or an iterable of ``(identity, raw)`` pairs; the
    latter can repeat an identity, which raises DuplicateIdentity.
    """
    store = DocumentStore.from_settings(settings)
    items = sources.items() if isinstance(sources, Mapping) else sources
    for identity, raw in items:
        store.load(identity, raw)
    logger.debug(f"Loaded {len(store)} documents")
    return store
