"""
Telecom Footfall Dataset Generator
Generates simulated telecom aggregates for every catalogue place
"""

import argparse
from datetime import datetime, timedelta, timezone
from pathlib import Path

from footfall.data.simulator import TelecomSimulator

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "generated"


def main():
    parser = argparse.ArgumentParser(description="Generate simulated telecom aggregates")
    parser.add_argument("--days", type=int, default=7, help="Days of data to generate")
    parser.add_argument("--window-minutes", type=int, default=60, help="Aggregation window length")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--format", choices=["csv", "parquet"], default="csv", help="Output format")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR, help="Output directory")
    args = parser.parse_args()

    print("=" * 60)
    print("📡 Telecom Footfall Dataset Generator")
    print("=" * 60 + "\n")

    today = datetime.now(timezone.utc).replace(tzinfo=None, hour=0, minute=0, second=0, microsecond=0)
    start = today - timedelta(days=args.days)

    simulator = TelecomSimulator(seed=args.seed)
    print(f"📊 Generating {args.days} days of {args.window_minutes}-minute windows...")
    df = simulator.generate(start, hours=args.days * 24, window_minutes=args.window_minutes)

    args.output_dir.mkdir(parents=True, exist_ok=True)
    target = args.output_dir / f"telecom_aggregates.{args.format}"
    if args.format == "parquet":
        df.write_parquet(target)
    else:
        df.write_csv(target)

    size = target.stat().st_size / 1024 / 1024
    print(f"   ✅ {target.name}: {df.height:,} rows ({size:.2f} MB)")
    print(f"\n📁 Output: {args.output_dir}")
    print(f"\n👉 Load with: python -m footfall.ingestion.batch_loader {target}\n")


if __name__ == "__main__":
    main()
