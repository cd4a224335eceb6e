import json
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from starlette.routing import Route

from .config import Rule
from .store import PersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/mockserver/admin')

ADMIN_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>Mock Server Admin</title>
    <link rel="icon" href="/static/favicon.svg" type="image/svg+xml">
    <link href="https://cdn.jsdelivr.net/npm/jsoneditor@9.5.6/dist/jsoneditor.min.css" rel="stylesheet" type="text/css">
    <script src="https://cdn.jsdelivr.net/npm/jsoneditor@9.5.6/dist/jsoneditor.min.js"></script>
</head>
<body>
    <h1>Mock Server Admin</h1>
    <div id="jsoneditor" style="height: 80vh; width: 100%;"></div>
    <button id="submit-button">Submit</button>
    <p id="status"></p>
    <script>
        var editor = new JSONEditor(document.getElementById('jsoneditor'), {
            mode: 'code',
            modes: ['code', 'form', 'text', 'tree', 'view']
        });
        editor.set(__ENDPOINTS__);

        function showStatus(message) {
            document.getElementById('status').textContent = message;
        }

        function submitForm() {
            var data;
            try {
                data = editor.get();
            } catch (err) {
                showStatus('Invalid JSON data');
                return;
            }
            fetch('/mockserver/admin/update', {
                method: 'POST',
                headers: {'Content-Type': 'application/json'},
                body: JSON.stringify(data)
            }).then(function (response) {
                showStatus(response.ok ? 'Endpoints updated successfully' : 'Failed to update endpoints');
            });
        }

        document.getElementById('submit-button').addEventListener('click', submitForm);
        document.addEventListener('keydown', function (event) {
            if ((event.ctrlKey || event.metaKey) && (event.key === 's' || event.key === 'S')) {
                event.preventDefault();
                submitForm();
            }
        });
    </script>
</body>
</html>
"""


def current_endpoints(request: Request) -> list[dict]:
    snapshot = request.app.state.registry.read()
    return [rule.model_dump(mode='json') for rule in snapshot.rules]


@router.get('', response_class=HTMLResponse)
async def admin_page(request: Request):
    endpoints = json.dumps(current_endpoints(request), indent=2)
    # keep '</script>' inside payload strings from closing the script block
    return ADMIN_PAGE.replace('__ENDPOINTS__', endpoints.replace('</', '<\\/'))


@router.get('/endpoints')
async def list_endpoints(request: Request):
    return current_endpoints(request)


@router.post('/update', response_class=PlainTextResponse)
async def update_endpoints(new_endpoints: list[Rule], request: Request):
    """Validate, persist and publish a full replacement rule list."""
    try:
        await request.app.state.registry.replace(new_endpoints)
    except PersistenceError:
        raise HTTPException(status_code=500, detail='Failed to write settings to file')

    logger.info('Endpoints updated dynamically.')
    return 'Endpoints updated'


async def reserved_fallback(request: Request):
    """Admin paths never reach the backend: wrong method -> 405, unknown path -> 404."""
    allowed = sorted({
        method for route in router.routes
        if route.path == request.url.path for method in route.methods
    })
    if not allowed:
        raise HTTPException(status_code=404, detail='Not Found')
    raise HTTPException(status_code=405, detail='Method Not Allowed',
                        headers={'Allow': ', '.join(allowed)})


# mounted after the router above, before the dispatcher's catch-all
admin_fallback_routes = [
    Route('/mockserver/admin', reserved_fallback, methods=None),
    Route('/mockserver/admin/{rest:path}', reserved_fallback, methods=None),
]
