from fastapi import FastAPI, HTTPException, Header
from fastapi.responses import JSONResponse
from pathlib import Path
from pydantic import BaseModel
from typing import Dict
import json
import os
import time

app = FastAPI(title="Mock Chain Server", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/chain_stub") if os.path.exists("/chain_stub") else Path(__file__).resolve().parents[1] / "chain_stub"

# Idempotency-Key -> acknowledged transfer
TRANSFERS: Dict[str, dict] = {}
REJECTED_RECIPIENTS = {"rejecting-receiver"}


class TransferRequest(BaseModel):
    to: str
    amount: int
    reference: str


def load_feed(feed_ref: str) -> dict:
    file = DATA_DIR / f"feed_{feed_ref}.json"
    if not file.exists():
        raise HTTPException(status_code=404, detail="feed not found")
    return json.loads(file.read_text())


def build_round(feed: dict, position: int) -> dict:
    # Latest answer is stamped latest_age_seconds ago, earlier rounds one heartbeat apart
    last = len(feed["answers"]) - 1
    updated_at = int(time.time()) - feed["latest_age_seconds"] - (last - position) * feed["heartbeat_seconds"]
    round_id = feed["first_round_id"] + position
    return {
        "round_id": round_id,
        "answer": feed["answers"][position],
        "started_at": updated_at,
        "updated_at": updated_at,
        "answered_in_round": round_id,
    }


@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/feeds/{feed_ref}")
def get_feed(feed_ref: str):
    feed = load_feed(feed_ref)
    return {"description": feed["description"], "decimals": feed["decimals"]}

@app.get("/feeds/{feed_ref}/latest")
def get_latest_round(feed_ref: str):
    feed = load_feed(feed_ref)
    return JSONResponse(content=build_round(feed, len(feed["answers"]) - 1))

@app.get("/feeds/{feed_ref}/rounds/{round_id}")
def get_round(feed_ref: str, round_id: int):
    feed = load_feed(feed_ref)
    position = round_id - feed["first_round_id"]
    if not 0 <= position < len(feed["answers"]):
        raise HTTPException(status_code=404, detail="round not found")
    return JSONResponse(content=build_round(feed, position))

@app.post("/transfers")
def post_transfer(body: TransferRequest, idempotency_key: str = Header(...)):
    if body.to in REJECTED_RECIPIENTS:
        raise HTTPException(status_code=400, detail="recipient rejected transfer")
    if idempotency_key in TRANSFERS:
        return {"status": "duplicate", **TRANSFERS[idempotency_key]}
    TRANSFERS[idempotency_key] = body.model_dump()
    return {"status": "accepted", **TRANSFERS[idempotency_key]}
