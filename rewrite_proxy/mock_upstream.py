"""
Mock Upstream Application

A stand-in origin for local runs and integration tests. Serves a card info page
containing the currency call and zero balance the default rules rewrite.

Run with: python -m rewrite_proxy.mock_upstream
"""

import html
import json
import os

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from rewrite_proxy.middleware.body_parser import BodyParsingMiddleware

CARD_INFO_PAGE = """<!doctype html>
<html>
  <head><title>Card Info</title></head>
  <body>
    <h1>Mock Upstream cardInfo</h1>
    <script>
      function formatCurrency(a,b,c,d){return b+" "+c}
      formatCurrency('GBP', '£', '0.00', '{2}{3}');
    </script>
    <div id="balance">Balance: <span>£0.00</span></div>
  </body>
</html>"""


def create_mock_upstream() -> FastAPI:
    """Create the mock upstream application"""
    app = FastAPI(title="Mock Upstream", docs_url=None, redoc_url=None, openapi_url=None)
    app.add_middleware(BodyParsingMiddleware)

    @app.get("/cardInfo")
    async def card_info_page():
        return HTMLResponse(CARD_INFO_PAGE)

    @app.post("/cardInfo")
    async def card_info_echo(request: Request):
        body = getattr(request.state, "parsed_body", None) or {}
        payload = {
            "method": request.method,
            "path": request.url.path + (f"?{request.url.query}" if request.url.query else ""),
            "query": dict(request.query_params),
            "body": body,
        }
        balance = body.get("bal") or "0.00"
        page = (
            "<!doctype html><html><body>\n"
            "    <h1>Posted to /cardInfo</h1>\n"
            f"    <pre>{html.escape(json.dumps(payload, indent=2, ensure_ascii=False))}</pre>\n"
            f"    <p><strong>Balance:</strong> £{html.escape(str(balance))}</p>\n"
            "  </body></html>"
        )
        return HTMLResponse(page)

    @app.get("/favicon.ico")
    async def favicon():
        return Response(status_code=204)

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def catch_all(path: str, request: Request):
        return JSONResponse({"ok": True, "path": request.url.path, "method": request.method})

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_mock_upstream(), host="127.0.0.1", port=int(os.getenv("MOCK_PORT", "8081")))
