"""
End-to-end demo against a running backend (development network).

This script runs the complete flow over HTTP:
  1. Check health and the deployed contracts
  2. Read the oracle price and the mint price
  3. Artist mints a track token paying the mint price
  4. Underpaid mint is rejected
  5. Artist burns a token; a collector cannot burn one they did not mint
  6. Owner withdraws the collected fees
  7. Wait for the listener and list indexed tokens

Usage (server on localhost:8000):
    python scripts/run_demo.py
"""
import sys
import time

import httpx

BASE = "http://localhost:8000"
client = httpx.Client(base_url=BASE, timeout=10)


def section(title):
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)


def check(r: httpx.Response, expected: int = 200) -> dict:
    if r.status_code != expected:
        print(f"  FAIL ({r.status_code}): {r.text[:200]}")
        sys.exit(1)
    return r.json()


# ════════════════════════════════════════════════════════════
# DEMO FLOW
# ════════════════════════════════════════════════════════════

section("1. HEALTH + DEPLOYMENTS")

health = check(client.get("/health"))
print(f"  Network: {health['network']} (chain id {health['chain_id']}, block {health['block_number']})")
for d in check(client.get("/contract/deployments")):
    print(f"  {d['name']:<18} {d['address']}")

accounts = check(client.get("/accounts"))["accounts"]
OWNER, ARTIST, COLLECTOR = (a["address"] for a in accounts[:3])
print(f"  Owner:     {OWNER}")
print(f"  Artist:    {ARTIST}")
print(f"  Collector: {COLLECTOR}")


section("2. PRICES")

price = check(client.get("/nft/price"))
mint_price = check(client.get("/nft/mint-price"))
print(f"  ETH/USD answer: {price['price']} ({price['decimals']} decimals)")
print(f"  Mint price:     {mint_price['eth']} ETH ({mint_price['wei']} wei)")


section("3. ARTIST MINTS TWO TRACKS")

token_ids = []
for uri in ("ipfs://demo/track-1.json", "ipfs://demo/track-2.json"):
    minted = check(client.post("/nft/mint", json={"sender": ARTIST, "tokenUri": uri}))
    token_ids.append(minted["tokenId"])
    print(f"  Token #{minted['tokenId']} -> {uri} (tx {minted['txHash'][:12]}...)")


section("4. UNDERPAID MINT")

r = client.post("/nft/mint", json={"sender": ARTIST, "tokenUri": "ipfs://demo/cheap.json", "valueWei": 1})
reason = check(r, expected=400)["error"]["details"]["reason"]
print(f"  Rejected: {reason}")


section("5. BURN")

r = client.post("/nft/burn", json={"sender": COLLECTOR, "tokenId": token_ids[0]})
print(f"  Collector burn rejected: {check(r, expected=400)['error']['details']['reason']}")
burned = check(client.post("/nft/burn", json={"sender": ARTIST, "tokenId": token_ids[0]}))
print(f"  Artist burned #{burned['tokenId']}; artist now holds {burned['balance']} token(s)")


section("6. WITHDRAW")

stats = check(client.get("/contract/stats"))
print(f"  Contract balance: {stats['balanceWei']} wei")
withdrawn = check(client.post("/contract/withdraw", json={"sender": OWNER}))
print(f"  Withdrew {withdrawn['amountEth']} ETH to {withdrawn['owner']}")


section("7. INDEXED TOKENS")

print("  Waiting for the listener...")
time.sleep(5)
tokens = check(client.get("/nft/tokens", params={"includeBurned": "true"}))
for t in tokens["data"]:
    state = "burned" if t["isBurned"] else f"owner {t['ownerWallet'][:10]}..."
    print(f"  #{t['tokenId']}: {t['tokenUri']} ({state})")


section("DEMO COMPLETE")
