import argparse
import json
import logging
import sys

from core.app_context import AppContext
from core.config_loader import load_config
from core.exceptions import MatchingError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_profile(path: str) -> dict:
    """Read a company profile from a JSON file ('-' reads stdin)."""
    if path == '-':
        return json.load(sys.stdin)
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Subsidy matching engine")
    parser.add_argument('profile', type=str,
                        help="Path to a company profile JSON file, or '-' for stdin")
    parser.add_argument('--config', type=str, default='config.yaml',
                        help='Path to config.yaml (default: config.yaml)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Number of matches to return (default from config)')
    parser.add_argument('--force-refresh', action='store_true',
                        help='Bypass the recommendation cache read')
    parser.add_argument('--account', type=str, default=None,
                        help='Account charged for reasoning-service usage')
    parser.add_argument('--plan', type=str, default=None,
                        help='Subscription plan of the account (decouverte, business, premium)')
    parser.add_argument('--local-only', action='store_true',
                        help='Rank with the local scorer only (no refinement, no cache)')
    args = parser.parse_args(argv)

    config = load_config(args.config)
    context = AppContext.build(config)
    profile = load_profile(args.profile)

    try:
        if args.local_only:
            result = context.engine.match_local(profile, limit=args.limit)
        else:
            result = context.engine.match(
                profile,
                limit=args.limit,
                force_refresh=args.force_refresh,
                account_id=args.account,
                plan=args.plan,
            )
    except MatchingError as e:
        logger.error(f"Matching failed: {e}")
        return 1

    stats = result.pipeline_stats
    logger.info(
        f"{len(result.matches)} matches, refined={result.was_ai_refined}, "
        f"fallback_reason={stats.fallback_reason}, {stats.processing_time_ms}ms"
    )
    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
