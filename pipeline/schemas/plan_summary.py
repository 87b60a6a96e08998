"""Output contract for foundation and plot/grading plan summaries."""

from pipeline.schemas.base import ExtractionSchema, SchemaField

LENGTH_METHODS = (
    "dimension_text",
    "scale_bar_approx",
    "inferred_from_property_dims",
    "unknown",
)


def _s(name: str, description: str | None = None) -> SchemaField:
    # Strict structured output needs every key present; "not found" is "".
    return SchemaField(
        name, "string", required=True, default="", description=description
    )


LOT_INFO = SchemaField(
    "lot_info",
    "object",
    fields=(_s("lot_number"), _s("block"), _s("subdivision")),
)

FOUNDATION_FIELDS = (
    _s("basement_wall_height_ft"),
    _s("basement_wall_thickness_in"),
    _s("basement_perimeter_ft"),
    _s("footing_width_in"),
    _s("footing_thickness_in"),
    _s("frost_depth_in"),
    _s("slab_thickness_in"),
    _s("concrete_strength_psi"),
    _s("garage_slab_sqft"),
    _s("basement_slab_sqft"),
    _s("porch_sqft_total"),
    _s("driveway_sqft"),
    _s("retaining_conditions"),
    _s("rebar_summary"),
)

PLOT_GRADING_FIELDS = (
    _s("water_service_length_ft", "Water meter pit to house, feet"),
    _s("water_service_length_method", "One of: " + ", ".join(LENGTH_METHODS)),
    _s("sewer_service_length_ft", "Sewer stub to house, feet"),
    _s("sewer_service_length_method", "One of: " + ", ".join(LENGTH_METHODS)),
    _s("lot_area_sqft"),
    _s("house_footprint_area_sqft"),
    _s("grading_area_sqft", "Lot area minus house footprint"),
    _s("top_of_foundation_elev_ft"),
    _s("foundation_wall_total_lf"),
    _s("plot_grading_notes"),
)

ESTIMATION_DATA = SchemaField(
    "estimation_data",
    "object",
    fields=FOUNDATION_FIELDS + PLOT_GRADING_FIELDS,
)

PLAN_SUMMARY_SCHEMA = ExtractionSchema(
    name="wc_foundation_summary",
    version="2",
    fields=(
        LOT_INFO,
        _s("foundation_type"),
        _s("garage_type"),
        SchemaField("porch_count", "integer", required=True, default=0),
        _s("basement_notes"),
        _s("structural_notes"),
        ESTIMATION_DATA,
        SchemaField("unusual_items", "array", required=True, default=()),
        SchemaField("inspection_requirements", "array", required=True, default=()),
        SchemaField("code_references", "array", required=True, default=()),
        _s("quick_summary"),
    ),
    strict=True,
    additional_properties=False,
)
