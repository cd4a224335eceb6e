import asyncio
import logging
import ssl

import httpx
from fastapi import Request
from starlette.responses import StreamingResponse

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = {
    b'connection',
    b'keep-alive',
    b'proxy-authenticate',
    b'proxy-authorization',
    b'te',
    b'trailers',
    b'transfer-encoding',
    b'upgrade',
    b'host',
}
RESPONSE_SKIP_HEADERS = {b'connection', b'keep-alive', b'transfer-encoding'}

DISCONNECT_POLL_INTERVAL = 0.25


class ProxyError(Exception):
    """Backend could not be reached or answered with garbage."""


class ClientDisconnected(Exception):
    pass


def create_client(timeout: float | None = None) -> httpx.AsyncClient:
    """
    Pooled client for the backend. Certificates are checked against the
    system trust store and verification cannot be turned off.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        verify=ssl.create_default_context(),
        follow_redirects=False,
    )


def request_path(request: Request) -> str:
    """Path as sent on the wire; percent-escapes such as %2F stay intact."""
    # some servers leave the query on raw_path
    raw_path = request.scope.get('raw_path')
    return raw_path.partition(b'?')[0].decode('latin-1') if raw_path else request.url.path


def backend_url(base_url: str, request: Request) -> str:
    query = request.url.query
    return base_url.rstrip('/') + request_path(request) + (f'?{query}' if query else '')


async def relay(resp: httpx.Response):
    try:
        async for chunk in resp.aiter_raw():
            yield chunk
    finally:
        await resp.aclose()


class Forwarder:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def forward(self, request: Request, base_url: str) -> StreamingResponse:
        url = backend_url(base_url, request)
        headers = [
            (k, v) for k, v in request.headers.raw if k.lower() not in HOP_BY_HOP_HEADERS
        ]
        body = await request.body()

        logger.info('Forwarding %s request to: %s', request.method, url)
        outgoing = self.client.build_request(request.method, url, headers=headers, content=body)
        try:
            resp = await self._send_while_connected(request, outgoing)
        except httpx.HTTPError as exc:
            logger.error('Error during proxy request to %s: %r', url, exc)
            raise ProxyError(str(exc)) from exc

        logger.info('Received proxied response with status: %d', resp.status_code)
        response = StreamingResponse(
            relay(resp),
            status_code=resp.status_code,
        )
        response.raw_headers = [
            (k, v) for k, v in resp.headers.raw if k.lower() not in RESPONSE_SKIP_HEADERS
        ]
        return response

    async def _send_while_connected(self, request: Request, outgoing: httpx.Request) -> httpx.Response:
        send = asyncio.ensure_future(self.client.send(outgoing, stream=True))
        watch = asyncio.ensure_future(self._wait_for_disconnect(request))
        try:
            await asyncio.wait({send, watch}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watch.cancel()
            abandoned = not send.done()
            if abandoned:
                send.cancel()

        if abandoned:
            logger.info('Client went away, abandoning request to %s', outgoing.url)
            raise ClientDisconnected()
        return send.result()

    @staticmethod
    async def _wait_for_disconnect(request: Request) -> None:
        while not await request.is_disconnected():
            await asyncio.sleep(DISCONNECT_POLL_INTERVAL)
