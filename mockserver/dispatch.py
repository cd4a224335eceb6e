import logging

from fastapi import HTTPException, Request, Response

from .proxy import ClientDisconnected, Forwarder, ProxyError, request_path
from .registry import Registry
from .synth import synthesize

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Per-request flow: match against the current snapshot, then either
    answer with the rule's canned response or forward to the backend.

    Every outcome is an HTTP response; failures become 502 (backend) or a
    bare 500 (anything else).
    """
    def __init__(self, registry: Registry, forwarder: Forwarder):
        self.registry = registry
        self.forwarder = forwarder

    async def dispatch(self, request: Request) -> Response:
        snapshot = self.registry.read()
        method, path = request.method, request_path(request)
        logger.info('Processing request: %s %s', method, path)

        try:
            matched = snapshot.table.lookup(path)
            if matched is not None:
                rule = snapshot.rules[matched.index]
                mock = synthesize(rule, method, matched.params)
                if mock is not None:
                    logger.info('Mocked response for %s %s: %d', method, path, mock.status)
                    return Response(
                        content=mock.body,
                        status_code=mock.status,
                        headers={'content-type': mock.content_type},
                    )
                logger.debug('Path %s matched %s but method %s differs', path, rule.path, method)

            logger.info('Proxying request to default backend: %s', snapshot.default_endpoint)
            return await self.forwarder.forward(request, snapshot.default_endpoint)
        except ProxyError:
            raise HTTPException(status_code=502, detail='Bad Gateway')
        except ClientDisconnected:
            return Response(status_code=499)
        except Exception:
            logger.exception('Unhandled error while dispatching %s %s', method, path)
            raise HTTPException(status_code=500, detail='Internal Server Error')
