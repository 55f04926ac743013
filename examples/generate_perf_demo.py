#!/usr/bin/env python3
"""
Example: Generate the skewed compliance filings dataset using SkewLab.

Produces a laptop-sized copy of the lab dataset (entities, jurisdictions,
filing types, filings, invoices, payments), writes it to CSV and prints the
skew the lab queries depend on.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from skewlab.data.config import GeneratorConfig
from skewlab.data.generators import SkewedDatasetGenerator


def main():
    """Generate a sample skewed dataset."""

    print("=" * 60)
    print("  SKEWLAB - Skewed Compliance Dataset Generator")
    print("=" * 60)

    config = GeneratorConfig(
        entity_count=2000,
        filing_count=35000,
        invoice_count=25000,
        payment_count=18000,
        seed=42,
    )
    generator = SkewedDatasetGenerator(config)
    dataset = generator.generate_full_dataset()

    output_dir = "data/perfdemo_sample"
    generator.save_dataset(dataset, output_dir)

    stats = dataset["statistics"]
    statuses = stats["distributions"]["compliance_filings.filing_status"]["pct"]

    print(f"\nDataset Summary:")
    for table, count in stats["row_counts"].items():
        print(f"  {table:<22}{count:>8}")
    print(f"  Mega-client share:    {stats['clients']['mega_share']:.1%}")
    print(f"  Hot entity share:     {stats['hot_entity_share']:.1%}")
    print(f"  Overdue filings:      {statuses.get('Overdue', 0)}%")
    print(f"  Date Range:           {config.start_date} to {config.end_date}")
    print(f"  Output:               {output_dir}/")
    print("=" * 60)


if __name__ == "__main__":
    main()
