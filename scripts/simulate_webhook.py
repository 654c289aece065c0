#!/usr/bin/env python3
"""
Send a signed webhook to a running proxy for local testing.

Usage:
    python scripts/simulate_webhook.py --provider github --path /post
    python scripts/simulate_webhook.py --provider gitlab --event "Push Hook"
"""

import argparse
import hashlib
import hmac
import json
import os

import httpx


def main():
    parser = argparse.ArgumentParser(description="Simulate a provider webhook")
    parser.add_argument("--url", default="http://localhost:8080", help="Proxy base URL")
    parser.add_argument("--path", default="/", help="Path to forward to")
    parser.add_argument("--provider", choices=["github", "gitlab"], default="github")
    parser.add_argument("--event", default="push", help="Event type header value")
    parser.add_argument(
        "--secret", default=None, help="Webhook secret (or use WEBHOOK_SECRET env)"
    )

    args = parser.parse_args()

    secret = args.secret or os.environ.get("WEBHOOK_SECRET")
    if not secret:
        print("Error: Webhook secret required (--secret or WEBHOOK_SECRET)")
        return 1

    payload = {
        "ref": "refs/heads/main",
        "repository": {
            "full_name": "owner/repo",
        },
    }
    payload_bytes = json.dumps(payload).encode()

    headers = {"Content-Type": "application/json"}
    if args.provider == "github":
        headers["X-GitHub-Event"] = args.event
        headers["X-Hub-Signature-256"] = (
            "sha256="
            + hmac.new(
                secret.encode("utf-8"),
                payload_bytes,
                hashlib.sha256,
            ).hexdigest()
        )
    else:
        headers["X-Gitlab-Event"] = args.event
        headers["X-Gitlab-Token"] = secret

    target = args.url.rstrip("/") + args.path
    print(f"Sending {args.provider} webhook to {target}")

    response = httpx.post(target, content=payload_bytes, headers=headers)

    print(f"\nResponse status: {response.status_code}")
    print(f"Response body: {response.text}")

    return 0 if response.is_success else 1


if __name__ == "__main__":
    exit(main())
