import argparse
import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from patent_search.config import settings
from patent_search.db import AsyncSessionLocal, SqlRecordStore, create_schema
from patent_search.embeddings.embedder import Embedder
from patent_search.embeddings.models import IndexConfig
from patent_search.llm.client import LLMClient
from patent_search.main import configure_logging
from patent_search.pipelines.embedding import EmbeddingPipeline
from patent_search.pipelines.enrichment import EnrichmentPipeline
from patent_search.pipelines.worker import drain


def parse_args():
    parser = argparse.ArgumentParser(description="Summarize and embed pending patents.")
    parser.add_argument("--batch-size", type=int, default=settings.default_batch_size)
    parser.add_argument("--max-batches", type=int, default=None)
    parser.add_argument("--init-schema", action="store_true", help="Create tables first.")
    parser.add_argument("--stage", choices=["all", "enrich", "embed"], default="all")
    return parser.parse_args()


async def main():
    args = parse_args()
    configure_logging(settings.log_level)
    config = IndexConfig.from_settings(settings)

    if args.init_schema:
        print("Creating schema...")
        await create_schema()

    async with AsyncSessionLocal() as session:
        store = SqlRecordStore(session, yield_per=settings.scan_chunk_size)

        # 1. Summaries
        if args.stage in ("all", "enrich"):
            print("Enriching documents...")
            pipeline = EnrichmentPipeline(store, LLMClient(), config)
            created = await drain(pipeline, args.batch_size, args.max_batches)
            print(f"Created {created} summaries.")

        # 2. Embeddings
        if args.stage in ("all", "embed"):
            print("Embedding summaries...")
            pipeline = EmbeddingPipeline(store, Embedder(), config)
            created = await drain(pipeline, args.batch_size, args.max_batches)
            print(f"Created {created} embeddings.")

        stats = await store.get_stats()

    print(
        "Done! {documents} documents, {summaries} summaries, {embeddings} embeddings "
        "({pending_enrichment} awaiting enrichment, {pending_embedding} awaiting embedding).".format(**stats)
    )

if __name__ == "__main__":
    asyncio.run(main())
