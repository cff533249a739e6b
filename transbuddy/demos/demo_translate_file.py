from __future__ import annotations
import argparse
import sys

from dotenv import load_dotenv

from transbuddy.nlp.translator.errors import TranslationError
from transbuddy.nlp.translator.factory import get_translator
from transbuddy.nlp.translator.remote import ApiTranslator
from transbuddy.nlp.translator.service import TranslationService

def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    ap = argparse.ArgumentParser(prog="transbuddy-translate")
    ap.add_argument("input", help="Path to UTF-8 text file. Use - for stdin.")
    ap.add_argument("--source", default="auto", help="source language, e.g. en-US, or auto")
    ap.add_argument("--target", required=True, help="target language, e.g. fr-FR")
    ap.add_argument("--provider", default=None, help="google | azure | deepl | libre (or set TRANSLATION_SERVICE)")
    ap.add_argument("--server-url", default=None, help="translate through a running transbuddy-server instead")
    args = ap.parse_args(argv)

    if args.input == "-":
        text = sys.stdin.read().strip()
    else:
        with open(args.input, "r", encoding="utf-8") as f:
            text = f.read().strip()

    try:
        translator = ApiTranslator(args.server_url) if args.server_url else get_translator(args.provider)
        service = TranslationService(translator)
        out = service.translate(text, args.source, args.target)
    except TranslationError as e:
        print(f"Translation failed: {e}", file=sys.stderr)
        return 1

    print(f"[provider] {service.provider}")
    print(f"---- {args.source} ----")
    print(text)
    print(f"---- {args.target} ----")
    print(out)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
