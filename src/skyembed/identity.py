from __future__ import annotations

import json
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import unquote

import requests

from .config import Settings

DID_PREFIX = "did:"
PLC_PREFIX = "did:plc:"
WEB_PREFIX = "did:web:"
PDS_SERVICE_ID = "#atproto_pds"
PDS_SERVICE_TYPE = "AtprotoPersonalDataServer"

_DNS_TXT_PREFIX = "did="
_WELL_KNOWN_PATH = "/.well-known/atproto-did"
# https://github.com/did-method-plc/did-method-plc#identifier-syntax
_WELL_KNOWN_READ_LIMIT = 32
_DID_DOCUMENT_READ_LIMIT = 10 * 1024 * 1024
_READ_CHUNK_SIZE = 64 * 1024


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[identity] {message}", file=sys.stderr, flush=True)


@dataclass(frozen=True)
class DidService:
    id: str
    type: str
    endpoint: str


@dataclass(frozen=True)
class DidDocument:
    also_known_as: tuple[str, ...] = ()
    services: tuple[DidService, ...] = ()


@dataclass(frozen=True)
class IdentityResolution:
    canonical_id: str
    service_endpoint: str
    document: DidDocument = field(default_factory=DidDocument)


def clean_actor(value: str) -> str:
    return value.replace("|", "").strip().lstrip("@")


def is_did(value: str) -> bool:
    return value.startswith(DID_PREFIX)


def _read_capped(url: str, *, limit: int, timeout: float) -> bytes | None:
    try:
        with requests.get(url, timeout=timeout, stream=True) as response:
            if response.status_code != 200:
                _log(f"  {url} answered {response.status_code}")
                return None
            body = bytearray()
            for chunk in response.iter_content(
                chunk_size=min(limit, _READ_CHUNK_SIZE)
            ):
                body.extend(chunk)
                if len(body) >= limit:
                    break
            return bytes(body[:limit])
    except requests.RequestException as exc:
        _log(f"  {url} failed: {exc}")
        return None


def _resolve_via_api(handle: str, *, client: Any, timeout: float) -> str | None:
    try:
        resolved = client.com.atproto.identity.resolveHandle(handle=handle)
    except Exception as exc:
        _log(f"  resolveHandle failed for {handle}: {exc}")
        return None
    did = resolved.get("did") if isinstance(resolved, dict) else None
    if not isinstance(did, str) or not did.startswith(DID_PREFIX):
        return None
    return did


def _resolve_via_dns(handle: str, *, client: Any, timeout: float) -> str | None:
    import dns.exception
    import dns.resolver

    try:
        answer = dns.resolver.resolve(
            f"_atproto.{handle}", "TXT", lifetime=timeout
        )
    except dns.exception.DNSException as exc:
        _log(f"  TXT lookup failed for {handle}: {exc}")
        return None
    first = next(iter(answer), None)
    if first is None:
        return None
    strings = getattr(first, "strings", None) or ()
    record = b"".join(strings).decode("utf-8", errors="ignore")
    if not record.startswith(_DNS_TXT_PREFIX):
        return None
    return record[len(_DNS_TXT_PREFIX) :]


def _resolve_via_well_known(
    handle: str, *, client: Any, timeout: float
) -> str | None:
    body = _read_capped(
        f"https://{handle}{_WELL_KNOWN_PATH}",
        limit=_WELL_KNOWN_READ_LIMIT,
        timeout=timeout,
    )
    if body is None:
        return None
    text = body.decode("utf-8", errors="ignore").strip()
    if not text.startswith(DID_PREFIX):
        return None
    return text


_HANDLE_STRATEGIES: tuple[tuple[str, Callable[..., str | None]], ...] = (
    ("api", _resolve_via_api),
    ("dns", _resolve_via_dns),
    ("well-known", _resolve_via_well_known),
)


def resolve_handle(actor: str, *, client: Any, settings: Settings) -> str:
    """Resolve a handle to a DID, falling back to the input when nothing answers.

    Strategies run in order (AppView ``resolveHandle``, DNS ``_atproto`` TXT,
    HTTPS well-known path) and the first DID wins. All strategies share one
    deadline of ``settings.timeout`` seconds. Input that already is a DID is
    returned without any network call.
    """
    cleaned = clean_actor(actor)
    if not cleaned or is_did(cleaned):
        return cleaned
    deadline = time.monotonic() + settings.timeout
    for name, strategy in _HANDLE_STRATEGIES:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            _log(f"Ran out of time resolving {cleaned}")
            break
        did = strategy(cleaned, client=client, timeout=remaining)
        if did:
            _log(f"Resolved {cleaned} via {name}: {did}")
            return did
    _log(f"Could not resolve {cleaned}, using it as-is")
    return cleaned


def did_document_url(did: str, *, settings: Settings) -> str | None:
    # https://atproto.com/specs/did#blessed-did-methods
    if did.startswith(PLC_PREFIX):
        return f"{settings.plc_directory}/{did}"
    if did.startswith(WEB_PREFIX):
        host = unquote(did[len(WEB_PREFIX) :])
        return f"https://{host}/.well-known/did.json"
    return None


def _parse_did_document(payload: Any) -> DidDocument:
    if not isinstance(payload, dict):
        return DidDocument()
    aliases = payload.get("alsoKnownAs")
    services: list[DidService] = []
    raw_services = payload.get("service")
    if isinstance(raw_services, list):
        for item in raw_services:
            if not isinstance(item, dict):
                continue
            endpoint = item.get("serviceEndpoint")
            if not isinstance(endpoint, str):
                continue
            services.append(
                DidService(
                    id=str(item.get("id") or ""),
                    type=str(item.get("type") or ""),
                    endpoint=endpoint,
                )
            )
    return DidDocument(
        also_known_as=tuple(
            alias for alias in aliases if isinstance(alias, str)
        )
        if isinstance(aliases, list)
        else (),
        services=tuple(services),
    )


def resolve_did_document(did: str, *, settings: Settings) -> DidDocument:
    url = did_document_url(did, settings=settings)
    if url is None:
        return DidDocument()
    body = _read_capped(url, limit=_DID_DOCUMENT_READ_LIMIT, timeout=settings.timeout)
    if not body:
        return DidDocument()
    try:
        payload = json.loads(body)
    except ValueError:
        _log(f"  DID document for {did} is not valid JSON")
        return DidDocument()
    return _parse_did_document(payload)


def service_endpoint(document: DidDocument, *, default: str) -> str:
    for service in document.services:
        if service.id == PDS_SERVICE_ID and service.type == PDS_SERVICE_TYPE:
            return service.endpoint
    return default


def resolve_service_endpoint(did: str, *, settings: Settings) -> str:
    document = resolve_did_document(did, settings=settings)
    return service_endpoint(document, default=settings.default_pds)


def handle_alias(document: DidDocument) -> str | None:
    if not document.also_known_as:
        return None
    alias = document.also_known_as[0]
    if alias.startswith("at://"):
        alias = alias[len("at://") :]
    return alias or None


def resolve(actor: str, *, client: Any, settings: Settings) -> IdentityResolution:
    did = resolve_handle(actor, client=client, settings=settings)
    document = resolve_did_document(did, settings=settings)
    return IdentityResolution(
        canonical_id=did,
        service_endpoint=service_endpoint(document, default=settings.default_pds),
        document=document,
    )
