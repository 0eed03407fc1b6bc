from __future__ import annotations

import argparse
import json
import sys

import requests

MEDIA_TYPE = "application/external.dns.webhook+json;version=1"


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _endpoint(name: str) -> dict:
    return {"dnsName": name, "targets": [], "recordType": "A"}


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="LanDB alias webhook CLI")
    p.add_argument("--api", default="http://localhost:8888", help="Webhook base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("negotiate", help="Show the domain filter")
    sub.add_parser("records", help="List advertised aliases")
    sub.add_parser("healthz", help="Check the webhook is alive")

    s_adj = sub.add_parser("adjust", help="Send endpoints through /adjustendpoints")
    s_adj.add_argument("--file", required=True, help="JSON file with a list of endpoints")

    s_apply = sub.add_parser("apply", help="Create or delete aliases")
    s_apply.add_argument("--create", nargs="*", default=[], metavar="NAME")
    s_apply.add_argument("--delete", nargs="*", default=[], metavar="NAME")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")
    headers = {"Accept": MEDIA_TYPE, "Content-Type": MEDIA_TYPE}

    if args.cmd == "negotiate":
        _print(requests.get(f"{base}/", headers=headers, timeout=10).json())
        return 0

    if args.cmd == "records":
        r = requests.get(f"{base}/records", headers=headers, timeout=60)
        if not r.ok:
            print(r.text, file=sys.stderr)
            return 1
        _print(r.json())
        return 0

    if args.cmd == "healthz":
        r = requests.get(f"{base}/healthz", timeout=10)
        print(r.text)
        return 0 if r.ok else 1

    if args.cmd == "adjust":
        with open(args.file, encoding="utf-8") as f:
            payload = json.load(f)
        r = requests.post(f"{base}/adjustendpoints", data=json.dumps(payload), headers=headers, timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "apply":
        if not args.create and not args.delete:
            print("Nothing to do: pass --create and/or --delete", file=sys.stderr)
            return 2
        payload = {
            "Create": [_endpoint(n) for n in args.create],
            "Delete": [_endpoint(n) for n in args.delete],
        }
        r = requests.post(f"{base}/records", data=json.dumps(payload), headers=headers, timeout=120)
        if not r.ok:
            print(r.text, file=sys.stderr)
            return 1
        print("Applied.")
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
