from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

from arrival_attest.digest import arrival_digest, to_hex32
from arrival_attest.settings import Settings
from arrival_attest.signer import SigningIdentity, recover_signer, signature_hex


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

def parse_hex(s: str) -> bytes:
    s = s[2:] if s.startswith(("0x", "0X")) else s
    try:
        return bytes.fromhex(s)
    except ValueError:
        raise SystemExit(f"❌ Not hex: {s!r}")

def digest_or_exit(wallet: str, destination_id: int) -> bytes:
    try:
        return arrival_digest(wallet, destination_id)
    except ValueError as e:
        raise SystemExit(f"❌ {e}")

def cmd_serve(args):
    import uvicorn

    from api.server import create_app

    if args.env_file:
        load_dotenv(args.env_file)
    settings = Settings.load()
    configure_logging(settings.LOG_LEVEL)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )

def cmd_new_key(args):
    ident = SigningIdentity.generate()
    print("🔑 New verifier identity")
    print(f"   address     : {ident.address}")
    print(f"   private_key : {ident.export_key()}")
    print("   Store the key as VERIFIER_PRIVATE_KEY; register the address with the contract.")

def cmd_digest(args):
    d = digest_or_exit(args.wallet, args.destination_id)
    print(to_hex32(d))

def cmd_sign(args):
    key = args.key or os.getenv("VERIFIER_PRIVATE_KEY")
    if not key:
        raise SystemExit("❌ No key: pass --key or set VERIFIER_PRIVATE_KEY")
    try:
        ident = SigningIdentity.from_key(key)
    except ValueError as e:
        raise SystemExit(f"❌ {e}")

    d = digest_or_exit(args.wallet, args.destination_id)
    sig = ident.sign_digest(d)
    print("✅ Arrival signed (offline, no location check)")
    print(f"   signer    : {ident.address}")
    print(f"   digest    : {to_hex32(d)}")
    print(f"   signature : {signature_hex(sig)}")

def cmd_recover(args):
    d = digest_or_exit(args.wallet, args.destination_id)
    sig = parse_hex(args.signature)
    if len(sig) != 65:
        raise SystemExit(f"❌ Signature must be 65 bytes, got {len(sig)}")
    try:
        signer = recover_signer(d, sig)
    except Exception as e:
        raise SystemExit(f"❌ Recovery failed: {e}")
    print(signer)
    if args.expect and signer.lower() != args.expect.lower():
        raise SystemExit(f"❌ Signer mismatch: expected {args.expect}")

def main() -> None:
    load_dotenv()

    p = argparse.ArgumentParser(prog="arrival-attest")
    sub = p.add_subparsers(dest="cmd", required=True)

    # serve
    s = sub.add_parser("serve", help="Run the attestation HTTP API")
    s.add_argument("--host")
    s.add_argument("--port", type=int)
    s.add_argument("--env-file", help="Extra .env file to load before reading settings")
    s.set_defaults(func=cmd_serve)

    # new-key
    k = sub.add_parser("new-key", help="Generate a verifier secp256k1 key")
    k.set_defaults(func=cmd_new_key)

    # digest
    d = sub.add_parser("digest", help="Print the arrival digest for (wallet, destination)")
    d.add_argument("--wallet", required=True)
    d.add_argument("--destination-id", type=int, required=True)
    d.set_defaults(func=cmd_digest)

    # sign
    g = sub.add_parser("sign", help="Sign an arrival digest without a location check")
    g.add_argument("--wallet", required=True)
    g.add_argument("--destination-id", type=int, required=True)
    g.add_argument("--key", help="Private key (default: VERIFIER_PRIVATE_KEY)")
    g.set_defaults(func=cmd_sign)

    # recover
    r = sub.add_parser("recover", help="Recover the signer of an arrival signature")
    r.add_argument("--wallet", required=True)
    r.add_argument("--destination-id", type=int, required=True)
    r.add_argument("--signature", required=True)
    r.add_argument("--expect", help="Fail unless this address signed")
    r.set_defaults(func=cmd_recover)

    args = p.parse_args()
    if hasattr(args, "func"):
        args.func(args)

if __name__ == "__main__":
    main()
