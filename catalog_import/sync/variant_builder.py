# catalog_import/sync/variant_builder.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from catalog_import.reconcile.images import OptionImageMap, match_option_image
from catalog_import.reconcile.variants import VariantAccumulator, merge_dimensions
from catalog_import.sync.context import ImportContext
from catalog_import.sync.plans import OptionPlan, VariantPlan


def build_variant_plans(
    ctx: ImportContext,
    key: Any,
    acc: VariantAccumulator,
    image_map: Optional[OptionImageMap] = None,
    image_maps: Optional[Dict[str, OptionImageMap]] = None,
) -> List[VariantPlan]:
    """
    Accumulated dimensions -> VariantPlans with canonical names and best-effort
    option images. `image_maps` (raw dimension name -> map) wins over the shared
    `image_map` for the dimensions it names.
    """
    report = ctx.report
    plans: List[VariantPlan] = []
    for dim, options in merge_dimensions(acc):
        if not dim.known:
            report.unknown_dimensions[dim.name] += 1
            report.flag(key, "unknown_dimension", dimension=dim.raw)

        lookup = image_map
        if image_maps is not None and dim.raw in image_maps:
            lookup = image_maps[dim.raw]

        opts: List[OptionPlan] = []
        for tally in options:
            url = None
            if lookup:
                m = match_option_image(tally.value, lookup, ctx.options.option_prefixes)
                report.record_image(key, tally.value, m)
                url = m.value if m.ok else None
            else:
                report.image_matches["no_media"] += 1
            opts.append(OptionPlan(value=tally.value, image_url=url, stock=tally.stock))
        plans.append(VariantPlan(name=dim.name, options=opts))
    return plans
