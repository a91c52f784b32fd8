#!/usr/bin/env python3
"""
Script to register a few sample assets and declare lineage between them
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from main import create_app
import db_helpers
from services.lineage_service import upsert_lineage_edge, lineage_stats

SAMPLE_ASSETS = [
    {'id': 'crm.customers_raw', 'name': 'Customers (raw)', 'type': 'Table', 'domain': 'Sales'},
    {'id': 'crm.customers_clean', 'name': 'Customers (clean)', 'type': 'Table', 'domain': 'Sales'},
    {'id': 'sales.orders', 'name': 'Orders', 'type': 'Table', 'domain': 'Sales'},
    {'id': 'sales.customer_orders', 'name': 'Customer Orders', 'type': 'View', 'domain': 'Sales'},
    {'id': 'reports.weekly_revenue', 'name': 'Weekly Revenue', 'type': 'Report', 'domain': 'Finance'},
]

SAMPLE_LINEAGE = [
    {
        'source': 'crm.customers_raw',
        'target': 'crm.customers_clean',
        'relationship_type': 'feeds_into',
        'strength': 0.9,
        'metadata': {
            'transformationType': 'ETL',
            'frequency': 'daily',
            'dataVolume': '1GB',
            'qualityScore': 0.95,
            'businessRules': ['Data validation', 'Format standardization'],
            'technicalNotes': 'Automated daily ETL process',
        },
    },
    {
        'source': 'crm.customers_clean',
        'target': 'sales.customer_orders',
        'relationship_type': 'transforms_to',
        'strength': 0.8,
        'metadata': {'transformationType': 'Join', 'frequency': 'batch'},
    },
    {
        'source': 'sales.orders',
        'target': 'sales.customer_orders',
        'relationship_type': 'transforms_to',
        'strength': 0.8,
        'metadata': {'transformationType': 'Join', 'frequency': 'batch'},
    },
    {
        'source': 'sales.customer_orders',
        'target': 'reports.weekly_revenue',
        'relationship_type': 'aggregates_to',
        'strength': 0.7,
        'metadata': {
            'transformationType': 'Aggregation',
            'frequency': 'weekly',
            'businessRules': ['Weekly aggregation', 'Outlier removal'],
        },
    },
]


def main():
    print("=" * 60)
    print("Sample Lineage Seeder")
    print("=" * 60)
    app = create_app()
    with app.app_context():
        for asset in SAMPLE_ASSETS:
            db_helpers.save_asset(asset)
        print(f" Registered {len(SAMPLE_ASSETS)} sample assets")
        created = updated = 0
        for rel in SAMPLE_LINEAGE:
            edge, was_created = upsert_lineage_edge(
                rel['source'], rel['target'], rel['relationship_type'],
                rel['metadata'], 'seed-script', rel['strength'],
            )
            if was_created:
                created += 1
            else:
                updated += 1
            print(f"   {edge.source_id} --{edge.relationship_type}--> {edge.target_id}")
        stats = lineage_stats()
        print("=" * 60)
        print(f" Created: {created}  Updated: {updated}")
        print(f" Active relationships: {stats['totalRelationships']}")
        print(f" Lineage coverage: {stats['coveragePercentage']}%")
        print("=" * 60)


if __name__ == '__main__':
    main()
