import json
import os
import shutil

import requests
from loguru import logger

from server.logging_config import setup_logging

# ---- Folder paths ----
INCOMING = "incoming"
SENT = "sent"
FAILED = "failed"

# ---- Server endpoint ----
SERVER_URL = os.environ.get("THRIPS_API_URL", "http://localhost:8000").rstrip("/") + "/thrips"

# ---- Validation ----
def validate_json(data):

    if not isinstance(data, dict):
        raise ValueError("Count sheet must be a JSON object")

    # Top level keys must match exactly
    if set(data.keys()) != {"tea", "other"}:
        raise ValueError("Invalid top-level keys")

    for key in ("tea", "other"):
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Invalid value for {key}: {value!r}")
        if value < 0:
            raise ValueError(f"Negative count for {key}: {value}")

    return True


# ---- Main processing ----
def process_files(incoming=INCOMING, sent=SENT, failed=FAILED, server_url=SERVER_URL):
    """Upload every ``*.json`` count sheet in ``incoming``; returns (sent, failed) counts."""

    os.makedirs(sent, exist_ok=True)
    os.makedirs(failed, exist_ok=True)

    n_sent = n_failed = 0
    for filename in sorted(os.listdir(incoming)):

        if not filename.endswith(".json"):
            continue

        filepath = os.path.join(incoming, filename)

        try:
            # 1. Load JSON
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)

            # 2. Validate strictly
            validate_json(data)

            # 3. Send to counting server
            response = requests.post(server_url, json=data, timeout=5)

            if response.status_code != 201:
                raise ValueError(f"Server rejected payload ({response.status_code}): {response.text}")

            record = response.json()["data"]

            # 4. Move to sent only if upload successful
            shutil.move(filepath, os.path.join(sent, filename))
            logger.info("Uploaded {} as record {}, moved to {}/", filename, record["id"], sent)
            n_sent += 1

        except (OSError, ValueError, KeyError, requests.RequestException) as e:
            logger.warning("Rejected file {}: {}", filename, e)
            shutil.move(filepath, os.path.join(failed, filename))
            logger.info("Moved {} to {}/", filename, failed)
            n_failed += 1

    return n_sent, n_failed


if __name__ == "__main__":
    setup_logging(os.environ.get("LOG_LEVEL", "INFO").upper())
    process_files()
