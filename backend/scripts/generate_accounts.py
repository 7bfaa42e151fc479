"""Generate fresh Ethereum accounts (or list the dev mnemonic's) and save to file."""
import argparse
import json
import os

from chain.accounts import DEFAULT_MNEMONIC, derive_dev_accounts, generate_account

parser = argparse.ArgumentParser(description="Create demo accounts")
parser.add_argument("--roles", nargs="+", default=["deployer", "artist", "fan"])
parser.add_argument("--dev", action="store_true", help="Derive from the development mnemonic instead")
args = parser.parse_args()

if args.dev:
    derived = derive_dev_accounts(DEFAULT_MNEMONIC, len(args.roles))
else:
    derived = [generate_account() for _ in args.roles]

accounts = {
    role: {"address": acct.address, "private_key": "0x" + bytes(acct.key).hex()}
    for role, acct in zip(args.roles, derived)
}

# Save to file
out_path = os.path.join(os.path.dirname(__file__), "demo_accounts.json")
with open(out_path, "w") as f:
    json.dump(accounts, f, indent=2)

print(f"Accounts saved to: {out_path}")
for role, info in accounts.items():
    print(f"\n{role.upper()}:")
    print(f"  {info['address']}")
