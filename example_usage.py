"""
Example usage of the page understanding engine.
"""

import asyncio
import json
from pagesense import (
    DynamicCollector,
    EngineSettings,
    PageCache,
    PageConfig,
    PageRole,
    analyze_and_classify,
)
from pagesense.models import ConfigOverride, SelectorConfig
from pagesense.quality import extract_high_quality_items, organize_by_category


async def example_1_basic_collection():
    """Collect a source with fully automatic analysis."""
    print("=" * 60)
    print("Example 1: Automatic Collection")
    print("=" * 60)

    config = PageConfig(
        source_name="city-notices",
        url="https://example.com/board/notice/list"
    )

    collector = DynamicCollector(config, cache=PageCache())

    try:
        records = await collector.collect()

        print(f"\n✓ Collected {len(records)} records")
        print("\nFirst 3 records:")
        for i, record in enumerate(records[:3], 1):
            print(f"\n{i}. {json.dumps(record.model_dump(), indent=2, ensure_ascii=False)}")

        with open("output.json", "w", encoding="utf-8") as f:
            json.dump([r.model_dump() for r in records], f, indent=2, ensure_ascii=False)
        print("\n✓ Saved to output.json")

    except Exception as e:
        print(f"Error: {e}")


async def example_2_analyze_only():
    """Look at what the engine decides without collecting."""
    print("\n" + "=" * 60)
    print("Example 2: Analysis Only")
    print("=" * 60)

    url = "https://example.com/news"

    try:
        understanding = await analyze_and_classify(url)
        profile = understanding.profile
        strategy = understanding.strategy

        print(f"\nRendering:  {profile.rendering_type.value}")
        print(f"Access:     {profile.data_access_type.value}")
        print(f"Role:       {profile.page_role.value}")
        print(f"Strategy:   {strategy.fetcher.value}/{strategy.parser.value}")
        print(f"Items:      {len(understanding.model.items)}")

    except Exception as e:
        print(f"Error: {e}")


async def example_3_override_and_selectors():
    """Pin the role and fetcher of a source and add custom selectors."""
    print("\n" + "=" * 60)
    print("Example 3: Override and Selectors")
    print("=" * 60)

    config = PageConfig(
        source_name="festival",
        url="https://example.com/events",
        override=ConfigOverride(page_role=PageRole.LIST_EVENT),
        selectors=SelectorConfig(
            item="ul.events li",
            title=".event-title",
            date=".event-date",
            detail_url="a"
        )
    )

    settings = EngineSettings.from_env()
    collector = DynamicCollector(config, settings=settings)

    try:
        records = await collector.collect()
        print(f"\n✓ Collected {len(records)} event records")

    except Exception as e:
        print(f"Error: {e}")


def example_4_quality_report():
    """Score list items on a saved page and group them by category."""
    print("\n" + "=" * 60)
    print("Example 4: Quality Report")
    print("=" * 60)

    try:
        with open("page.html", encoding="utf-8") as f:
            markup = f.read()
    except OSError as e:
        print(f"Error: {e}")
        return

    items = extract_high_quality_items(markup, "https://example.com", min_score=0.5)
    for major, minors in organize_by_category(items).items():
        for minor, grouped in minors.items():
            print(f"{major} / {minor}: {len(grouped)} items")


def main():
    """Run examples."""
    print("pagesense - Example Usage\n")
    print("Note: Replace example URLs with real pages")
    print("Set ZERO_SHOT_API_URL to enable the optional role classifier\n")

    # Run examples (comment out as needed)
    asyncio.run(example_1_basic_collection())
    # asyncio.run(example_2_analyze_only())
    # asyncio.run(example_3_override_and_selectors())
    # example_4_quality_report()


if __name__ == "__main__":
    main()
