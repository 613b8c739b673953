from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import HTMLResponse


def mount_webui(app: FastAPI) -> None:
    @app.get("/", response_class=HTMLResponse)
    def _root():
        return """<!doctype html>
<html>
  <head><meta charset="utf-8"><title>box_lproj_tm</title></head>
  <body style="font-family: sans-serif; padding: 20px;">
    <h2>box_lproj_tm server is running ✅</h2>
    <ul>
      <li><a href="/api/health">/api/health</a></li>
      <li><a href="/api/workspace">/api/workspace</a></li>
      <li><a href="/api/resources">/api/resources</a></li>
    </ul>
  </body>
</html>"""
