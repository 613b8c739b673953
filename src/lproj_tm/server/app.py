from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import LprojConfig
from ..oracle import ChatOptions, OpenAIOracle
from .routes import build_router
from .webui import mount_webui
from .workspace import OracleFactory, Workspace


def create_app(
    cfg: LprojConfig,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    oracle_factory: Optional[OracleFactory] = None,
    enable_webui: bool = True,
) -> FastAPI:
    app = FastAPI(title="box_lproj_tm", version="0.1.0")

    # 本地工具：允许任意 origin，方便原生 H5 直连
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _default_oracle() -> OpenAIOracle:
        opt = ChatOptions(
            model=model or cfg.openai.model,
            timeout=cfg.openai.timeout,
            api_key_env=cfg.openai.api_key_env,
            brand_names=list(cfg.prompts.brand_names),
            extra_en=cfg.prompts.extra_en,
        )
        return OpenAIOracle(api_key=api_key, opt=opt)

    ws = Workspace(cfg=cfg, oracle_factory=oracle_factory or _default_oracle)
    ws.scan()
    app.state.workspace = ws

    app.include_router(build_router(ws))

    if enable_webui:
        mount_webui(app)

    return app
