"""Translate an already-published post from the command line.

Useful for posts that were ingested while translation was disabled or failed.

Usage:
    python -m scripts.translate_post <slug>           # all non-default locales
    python -m scripts.translate_post <slug> -l en     # only English
    python -m scripts.translate_post <slug> --force   # re-translate existing ones
"""

import argparse
import asyncio
import logging
import sys

from blog_api.services.ingestion.orchestrator import translate_and_store
from blog_api.services.llm import llm_configured
from blog_api.services.revalidation import revalidate_paths, revalidation_paths
from blog_api.services.storage import get_post_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("slug", help="slug of the canonical post")
    parser.add_argument(
        "-l",
        "--locale",
        action="append",
        dest="locales",
        help="target locale (repeatable; default: every non-default locale)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="translate even if a translation is already mapped",
    )
    return parser.parse_args(argv)


async def main(argv: list[str]) -> int:
    args = _parse_args(argv)

    if not llm_configured():
        print("ERROR: OPENAI_API_KEY is not set")
        return 1

    store = get_post_store()
    post = await store.get_post(args.slug)
    if post is None:
        print(f"ERROR: no canonical post with slug {args.slug!r}")
        return 1

    targets = args.locales or store.translation_locales
    unknown = [loc for loc in targets if loc not in store.translation_locales]
    if unknown:
        print(f"ERROR: not a translation locale: {', '.join(unknown)}")
        return 1

    if not args.force:
        mapping = (await store.load_mapping()).get(post.slug, {})
        existing = [loc for loc in targets if loc in mapping]
        for loc in existing:
            print(f"Skipping {loc}: already translated as {mapping[loc]}")
        targets = [loc for loc in targets if loc not in existing]
    if not targets:
        print("Nothing to translate.")
        return 0

    print(f"Translating {post.slug} to {', '.join(targets)}...")
    stored = await translate_and_store(store, post, locales=targets)

    for locale in targets:
        if locale in stored:
            print(f"  {locale}: {stored[locale]}")
        else:
            print(f"  {locale}: FAILED")

    await revalidate_paths(
        revalidation_paths(post.slug, list(stored.values()), store.locales)
    )
    return 0 if len(stored) == len(targets) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
