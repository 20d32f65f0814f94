#!/usr/bin/env python3

import logging
import random

import anyio
import click

from musicboxd_cache import AppConfig, CachedReads, CacheRegistry, InMemoryReadStore, build_stats_app
from musicboxd_cache.utils.resilience import CircuitBreaker, CircuitBreakerConfig

logger = logging.getLogger(__name__)


def seed_store(store: InMemoryReadStore, users: int) -> None:
    albums = [f"album{i:03d}" for i in range(50)]
    for user_id in range(1, users + 1):
        store.add_user(user_id, f"listener{user_id}")
        for spotify_id in random.sample(albums, 8):
            store.add_review(user_id, spotify_id, stars=random.choice([2.5, 3, 3.5, 4, 4.5, 5]))
        store.notify(user_id, random.randint(0, 4))
    for user_id in range(1, users + 1):
        for followee in random.sample(range(1, users + 1), min(5, users)):
            if followee != user_id:
                store.follow(user_id, followee)


@click.command()
@click.option("--port", default=3001, help="Port to listen on for HTTP")
@click.option(
    "--log-level",
    default="INFO",
    help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.option("--users", default=100, help="Number of fake users to seed the in-memory store with")
@click.option("--warm-requests", default=2000, help="Simulated profile-page reads before serving")
@click.option(
    "--sweep-interval",
    default=300.0,
    help="Seconds between expired-entry sweeps",
)
def main(port: int, log_level: str, users: int, warm_requests: int, sweep_interval: float) -> int:
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = AppConfig.from_dict({"cache": {"sweep_interval_seconds": sweep_interval}})
    registry = CacheRegistry(config.cache)
    registry.install_signal_handlers()

    store = InMemoryReadStore()
    seed_store(store, users)
    reads = CachedReads(
        store,
        registry,
        circuit_breaker=CircuitBreaker(CircuitBreakerConfig.from_resilience(config.resilience)),
        retry_attempts=config.resilience.retry_max_attempts,
        retry_backoff_ms=config.resilience.retry_backoff_ms,
    )

    async def warm() -> None:
        # Skewed traffic: a few popular profiles get most of the reads
        for _ in range(warm_requests):
            user_id = min(int(random.expovariate(0.1)) + 1, users)
            await reads.profile(user_id)
            await reads.social_stats(user_id)
            await reads.top_reviews(user_id)
            await reads.notification_count(user_id)

    anyio.run(warm)
    for name, stats in registry.stats().items():
        logger.info("%s: %d entries, hit rate %.2f", name, stats["size"], stats["hit_rate"])

    app = build_stats_app(registry)

    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=port)
    return 0


if __name__ == "__main__":
    main()
