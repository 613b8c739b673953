#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
box_lproj_tm tool.py
CLI 入口：参数解析 + action 路由 + exit code
commands：init / scan / missing / translate / export / remove / server
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.theme import Theme

from . import config as cfg_mod
from .completion import complete_missing
from .errors import ConfigError, FileWriteError, OracleFailure
from .oracle import ChatOptions, OpenAIConfigError, OpenAIOracle
from .store import LocalizationStore, discover_stores
from .tool_spec import ex, format_usage, opt, tool


BOX_TOOL = tool(
    id="ios.lproj_tm",
    name="box_lproj_tm",
    category="ios",
    summary="iOS *.lproj/*.strings：按原编码读写，列出缺失翻译并用 OpenAI 逐条补全",
    usage=[
        "box_lproj_tm init",
        "box_lproj_tm scan",
        "box_lproj_tm missing -r Localizable.strings -l de",
        "box_lproj_tm translate -r Localizable.strings -l de --save",
        "box_lproj_tm export -r Localizable.strings -l de",
        "box_lproj_tm remove -r Localizable.strings -l de -k KEY --save",
        "box_lproj_tm server --open",
    ],
    options=[
        opt("--project-root", "项目根目录（默认当前目录）"),
        opt("--config", "配置文件路径（默认 lproj_tm.yaml）"),
        opt("--root", "*.lproj 所在目录（覆盖配置 lang_root）"),
        opt("--resource / -r", "资源文件名，可省略 .strings"),
        opt("--lang / -l", "目标语言代码"),
        opt("--save", "写回语言文件（translate 失败时也写回已完成部分）"),
        opt("--model", "OpenAI 模型（默认 gpt-4o）"),
        opt("--api-key", "OpenAI API key（默认读环境变量 OPENAI_API_KEY）"),
        opt("-v / --verbose", "输出 DEBUG 日志"),
    ],
    examples=[
        ex("box_lproj_tm --root App/Resources scan", "查看每个资源各语言缺失数量"),
        ex("box_lproj_tm --root App/Resources translate -r Localizable -l ja --save", "补全日语并写回"),
        ex("box_lproj_tm server --port 37124 --open", "启动本地 API 并打开页面"),
    ],
    dependencies=[
        "openai>=1.0.0",
        "PyYAML>=6.0",
        "rich>=13.0.0",
        "fastapi",
        "uvicorn",
    ],
    docs="README.md",
)


EXIT_OK = 0
EXIT_FAIL = 1
EXIT_BAD = 2


def _get_console() -> Console:
    theme = Theme(
        {
            "meta": "dim",
            "error": "bold red",
            "ok": "bold green",
            "title": "bold green",
            "missing": "bold red",
        }
    )
    return Console(theme=theme)


def _setup_logging(verbose: bool, console: Console) -> None:
    logger = logging.getLogger("lproj_tm")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False, markup=False))


# ----------------------------
# 公共：配置 + store 定位
# ----------------------------

def _load_cfg(args: argparse.Namespace) -> cfg_mod.LprojConfig:
    project_root = Path(args.project_root).expanduser().resolve()
    cfg_path = Path(args.config) if args.config else None
    cfg = cfg_mod.load_config(cfg_path, project_root=project_root)
    if args.root:
        root = Path(args.root).expanduser()
        if not root.is_absolute():
            root = (project_root / root).resolve()
        cfg = cfg_mod.LprojConfig(
            project_root=cfg.project_root,
            lang_root=root,
            source_locales=cfg.source_locales,
            openai=cfg.openai,
            prompts=cfg.prompts,
            path=cfg.path,
        )
    return cfg


def _load_stores(cfg: cfg_mod.LprojConfig) -> Dict[str, LocalizationStore]:
    return discover_stores(cfg.lang_root, source_locales=cfg.source_locales)


def _pick_store(stores: Dict[str, LocalizationStore], name: str) -> LocalizationStore:
    if name in stores:
        return stores[name]
    # 允许省略扩展名：Localizable == Localizable.strings
    with_ext = name + cfg_mod.STRINGS_EXT
    if with_ext in stores:
        return stores[with_ext]
    available = ", ".join(sorted(stores)) or "（无）"
    raise ConfigError(f"未找到资源：{name}；可选：{available}")


def _require_language(store: LocalizationStore, lang: str) -> None:
    if lang not in store.translations:
        available = ", ".join(store.languages) or "（无）"
        raise ConfigError(f"{store.name} 没有语言 {lang}；可选：{available}")


def _make_oracle(cfg: cfg_mod.LprojConfig, args: argparse.Namespace) -> OpenAIOracle:
    opt = ChatOptions(
        model=(args.model or cfg.openai.model),
        timeout=cfg.openai.timeout,
        api_key_env=cfg.openai.api_key_env,
        brand_names=list(cfg.prompts.brand_names),
        extra_en=cfg.prompts.extra_en,
    )
    return OpenAIOracle(api_key=args.api_key, opt=opt)


# ----------------------------
# commands
# ----------------------------

def cmd_init(args: argparse.Namespace, console: Console) -> int:
    project_root = Path(args.project_root).expanduser().resolve()
    cfg_path = Path(args.config or cfg_mod.CONFIG_FILE).expanduser()
    if not cfg_path.is_absolute():
        cfg_path = (project_root / cfg_path).resolve()
    created = cfg_mod.init_config(cfg_path)
    if created:
        console.print(f"✅ 已生成：{cfg_path}", style="ok")
    else:
        console.print(f"✅ 配置已存在且校验通过：{cfg_path}", style="ok")
    return EXIT_OK


def cmd_scan(args: argparse.Namespace, console: Console) -> int:
    cfg = _load_cfg(args)
    stores = _load_stores(cfg)
    if not stores:
        console.print(f"未在 {cfg.lang_root} 下找到 *.lproj/*.strings", style="meta")
        return EXIT_OK

    table = Table(title=str(cfg.lang_root))
    table.add_column("resource")
    table.add_column("keys", justify="right")
    table.add_column("encoding")
    table.add_column("missing by language")

    for name in sorted(stores):
        store = stores[name]
        missing = [f"{lang}:{len(store.missing_keys(lang))}" for lang in store.languages]
        enc = store.encoding.value + (" + BOM" if store.has_bom else "")
        table.add_row(name, str(len(store.key_order)), enc, "  ".join(missing) or "-")

    console.print(table)
    return EXIT_OK


def cmd_missing(args: argparse.Namespace, console: Console) -> int:
    cfg = _load_cfg(args)
    store = _pick_store(_load_stores(cfg), args.resource)
    _require_language(store, args.lang)

    keys = store.missing_keys(args.lang)
    for k in keys:
        print(k)
    console.print(f"{store.name}/{args.lang}: {len(keys)} missing", style="meta")
    return EXIT_OK


def cmd_export(args: argparse.Namespace, console: Console) -> int:
    cfg = _load_cfg(args)
    store = _pick_store(_load_stores(cfg), args.resource)
    _require_language(store, args.lang)
    print(store.export_text(args.lang))
    return EXIT_OK


def cmd_remove(args: argparse.Namespace, console: Console) -> int:
    cfg = _load_cfg(args)
    store = _pick_store(_load_stores(cfg), args.resource)
    _require_language(store, args.lang)

    if args.key not in store.translations[args.lang]:
        console.print(f"{args.key} 在 {args.lang} 中不存在，无需删除", style="meta")
        return EXIT_OK

    store.remove_translation(args.key, args.lang)
    if args.save:
        path = store.save(cfg.lang_root, args.lang)
        console.print(f"✅ 已删除并写回：{path}", style="ok")
    else:
        console.print("已删除（未写回，使用 --save 落盘）", style="meta")
    return EXIT_OK


def cmd_translate(args: argparse.Namespace, console: Console) -> int:
    cfg = _load_cfg(args)
    store = _pick_store(_load_stores(cfg), args.resource)
    _require_language(store, args.lang)

    oracle = _make_oracle(cfg, args)

    failure: Optional[OracleFailure] = None
    with Progress(
        TextColumn("[title]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"{store.name} → {args.lang}", total=None)
        seen = {"total": 0}

        def on_progress(done: int, total: int) -> None:
            # (0, 0) = 全部完成
            if total == 0:
                progress.update(task, completed=seen["total"], total=seen["total"])
                return
            seen["total"] = total
            progress.update(task, completed=done, total=total)

        try:
            result = asyncio.run(complete_missing(store, args.lang, oracle, on_progress))
        except OracleFailure as e:
            failure = e

    if failure is not None:
        console.print(f"❌ 翻译中止：{failure}", style="error")
        console.print(f"已完成 {failure.committed} 条，保留在内存中", style="meta")
    else:
        console.print(
            f"✅ {store.name}/{args.lang}: 翻译 {len(result.translated)}/{result.total}"
            + (f"，空结果跳过 {len(result.skipped)}" if result.skipped else ""),
            style="ok",
        )

    # 中途失败也写回：已翻译的部分不丢
    if args.save:
        path = store.save(cfg.lang_root, args.lang)
        console.print(f"已写回：{path}", style="meta")

    return EXIT_FAIL if failure is not None else EXIT_OK


def cmd_server(args: argparse.Namespace, console: Console) -> int:
    from .server.app import create_app

    import uvicorn

    cfg = _load_cfg(args)
    app = create_app(cfg, api_key=args.api_key, model=args.model)

    if args.open:
        import threading
        import webbrowser

        def _open():
            webbrowser.open(f"http://{args.host}:{args.port}/")

        threading.Timer(0.8, _open).start()

    uvicorn.run(app, host=args.host, port=args.port, log_level=os.getenv("BOX_LPROJ_TM_LOG", "info"))
    return EXIT_OK


# ----------------------------
# parser
# ----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="box_lproj_tm",
        description=BOX_TOOL["summary"],
        epilog=format_usage(BOX_TOOL),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--project-root", default=".", help="项目根目录（默认当前目录）")
    p.add_argument("--config", default=None, help=f"配置文件路径（默认 {cfg_mod.CONFIG_FILE}，基于 project-root）")
    p.add_argument("--root", default=None, help="覆盖配置中的 lang_root（*.lproj 所在目录）")
    p.add_argument("-v", "--verbose", action="store_true", help="输出 DEBUG 日志")

    sub = p.add_subparsers(dest="command")

    sp = sub.add_parser("init", help="生成/校验配置文件")
    sp.set_defaults(handler=cmd_init)

    sp = sub.add_parser("scan", help="列出资源与各语言缺失数量")
    sp.set_defaults(handler=cmd_scan)

    def _resource_lang(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--resource", "-r", required=True, help="资源文件名，如 Localizable.strings")
        sp.add_argument("--lang", "-l", required=True, help="目标语言代码，如 de / ja / zh-Hans")

    sp = sub.add_parser("missing", help="列出缺失的 key")
    _resource_lang(sp)
    sp.set_defaults(handler=cmd_missing)

    sp = sub.add_parser("translate", help="逐条翻译缺失的 key")
    _resource_lang(sp)
    sp.add_argument("--api-key", default=None, help="OpenAI API key（或环境变量 OPENAI_API_KEY）")
    sp.add_argument("--model", default=None, help="模型（CLI 优先；不传则用配置/默认）")
    sp.add_argument("--save", action="store_true", help="完成后写回该语言文件（失败时也写回已翻译部分）")
    sp.set_defaults(handler=cmd_translate)

    sp = sub.add_parser("export", help="按源文件顺序输出某语言（复制用）")
    _resource_lang(sp)
    sp.set_defaults(handler=cmd_export)

    sp = sub.add_parser("remove", help="删除某语言的一条翻译")
    _resource_lang(sp)
    sp.add_argument("--key", "-k", required=True, help="要删除的 key")
    sp.add_argument("--save", action="store_true", help="删除后写回")
    sp.set_defaults(handler=cmd_remove)

    sp = sub.add_parser("server", help="启动本地 HTTP API")
    sp.add_argument("--host", default="127.0.0.1")
    sp.add_argument("--port", type=int, default=37124)
    sp.add_argument("--open", action="store_true", help="启动后打开浏览器")
    sp.add_argument("--api-key", default=None, help="OpenAI API key（或环境变量 OPENAI_API_KEY）")
    sp.add_argument("--model", default=None, help="模型")
    sp.set_defaults(handler=cmd_server)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return EXIT_BAD

    console = _get_console()
    _setup_logging(bool(args.verbose), console)

    try:
        return int(handler(args, console))
    except (ConfigError, OpenAIConfigError) as e:
        console.print(str(e), style="error")
        return EXIT_BAD
    except FileWriteError as e:
        console.print(f"❌ 保存失败：{e}", style="error")
        return EXIT_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
