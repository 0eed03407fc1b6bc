from __future__ import annotations

import argparse
import dataclasses
import sys

import uvicorn
from fastapi import FastAPI

from landbsync.errors import LandbSyncError
from landbsync.inventory import NodeInventory
from landbsync.kube import KubeClient
from landbsync.logs import configure_logging
from landbsync.openstack import NovaClient
from landbsync.provider import LandbProvider
from landbsync.settings import Settings, load_settings
from landbsync.webhook import create_app


def build_app(settings: Settings) -> FastAPI:
    log = configure_logging(settings.log_level)
    settings.validate()

    nova = NovaClient.from_settings(settings, logger=log.getChild("openstack"))
    kube = KubeClient.from_settings(settings, logger=log.getChild("kube"))
    inventory = NodeInventory(kube, nova, logger=log.getChild("inventory"))
    provider = LandbProvider(settings, inventory, nova, logger=log.getChild("provider"))

    app = create_app(provider, logger=log.getChild("webhook"), on_shutdown=[nova.close, kube.close])

    log.info(
        "Webhook configured: ingress label %r, dry run %s, domain filter %s",
        settings.ingress_label,
        settings.dry_run,
        settings.domain_filter or "(none)",
    )
    return app


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="ExternalDNS webhook publishing LanDB aliases via OpenStack metadata")
    p.add_argument("--listen-address", help="IP address to listen on (LANDBSYNC_LISTEN_ADDRESS)")
    p.add_argument("--listen-port", type=int, help="Port to listen on (LANDBSYNC_LISTEN_PORT)")
    p.add_argument("--log-level", help="debug, info, warn or error (LANDBSYNC_LOG_LEVEL)")
    p.add_argument("--dry-run", action="store_true", default=None, help="Compute changes without writing metadata")
    args = p.parse_args(argv)

    settings = load_settings()
    overrides = {
        "listen_address": args.listen_address,
        "listen_port": args.listen_port,
        "log_level": args.log_level,
        "dry_run": args.dry_run,
    }
    settings = dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    try:
        app = build_app(settings)
    except LandbSyncError as e:
        configure_logging(settings.log_level).error("Failed to start: %s", e)
        return 1

    uvicorn.run(app, host=settings.listen_address, port=settings.listen_port, log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
