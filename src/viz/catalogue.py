"""Static catalogue of 3D visualization models and the compatibility gate.

The catalogue is an immutable tuple. Whether a model is usable for the
current dataset is never stored on the record; it is derived on demand
from the column classifications with :func:`is_compatible`.
"""

from __future__ import annotations

from typing import Any

from src.viz.classifier import type_counts
from src.viz.types import (
    ColumnClassification,
    ColumnRequirement,
    ColumnType,
    ModelRequirements,
    VisualizationModel,
)

NUM = ColumnType.NUMERIC
TMP = ColumnType.TEMPORAL
CAT = ColumnType.CATEGORICAL


def _req(numeric: int | None = None, temporal: int | None = None,
         categorical: int | None = None,
         specific: list[tuple[ColumnType, int, str]] | None = None) -> ModelRequirements:
    return ModelRequirements(
        min_numeric_columns=numeric,
        min_temporal_columns=temporal,
        min_categorical_columns=categorical,
        specific_columns=tuple(ColumnRequirement(t, c, u) for t, c, u in (specific or [])),
    )


def _model(id: str, name: str, description: str, category: str, tags: list[str],
           complexity: str, prompt: str,
           requirements: ModelRequirements | None = None) -> VisualizationModel:
    return VisualizationModel(
        id=id, name=name, description=description, category=category,
        tags=tuple(tags), complexity=complexity, prompt=prompt,
        requirements=requirements or ModelRequirements(),
    )


XYZ = (NUM, 3, "x, y, z coordinates")

CATALOGUE: tuple[VisualizationModel, ...] = (
    # -- Scatter ---------------------------------------------------------
    _model("scatter3d", "3D Scatter", "Points in 3D space", "Scatter",
           ["points", "scatter", "3d", "basic"], "simple",
           "Show my data as a classic 3D scatter plot with spherical markers",
           _req(numeric=3, specific=[XYZ])),
    _model("scatter_bubble", "3D Bubbles", "Scatter with variable sizes", "Scatter",
           ["bubbles", "sizes", "proportions"], "simple",
           "Turn my data into 3D bubbles where size shows the weight of each value",
           _req(numeric=4, specific=[XYZ, (NUM, 1, "bubble size")])),
    _model("scatter_animated", "Animated Scatter", "Points with temporal animation", "Scatter",
           ["animation", "time", "evolution"], "medium",
           "Build a 3D scatter plot with animated effects and smooth transitions",
           _req(numeric=3, temporal=1, specific=[XYZ, (TMP, 1, "time sequence")])),
    _model("scatter_clustered", "Clustered Scatter", "Points colored by cluster", "Scatter",
           ["clusters", "groups", "classification"], "medium",
           "Organize my data into colored clusters in 3D space to reveal natural groups",
           _req(numeric=3, categorical=1, specific=[XYZ, (CAT, 1, "groups or categories")])),
    _model("scatter_density", "3D Density", "Scatter with density zones", "Scatter",
           ["density", "concentration", "heatmap"], "medium",
           "Show the density of my data with 3D concentration zones",
           _req(numeric=3, specific=[XYZ])),
    # -- Surfaces --------------------------------------------------------
    _model("surface3d", "3D Surface", "Continuous interpolated surface", "Surfaces",
           ["surface", "continuous", "interpolation"], "simple",
           "Turn my data into a smooth continuous 3D surface by interpolation",
           _req(numeric=3, specific=[(NUM, 3, "surface values")])),
    _model("surface_contour", "3D Contours", "Surface with level lines", "Surfaces",
           ["contours", "levels", "topography"], "medium",
           "Build a 3D surface with colored contours showing the different levels",
           _req(numeric=3, specific=[(NUM, 3, "surface and contour values")])),
    _model("surface_mesh", "3D Mesh", "Surface with visible grid", "Surfaces",
           ["mesh", "grid", "wireframe"], "simple",
           "Generate a 3D surface with a visible mesh to show its structure",
           _req(numeric=3, specific=[(NUM, 3, "x, y, z mesh coordinates")])),
    _model("surface_gradient", "3D Gradient", "Surface with color gradients", "Surfaces",
           ["gradient", "shading", "colors"], "medium",
           "Generate a 3D surface shaded by a color gradient following the values",
           _req(numeric=4, specific=[XYZ, (NUM, 1, "gradient color value")])),
    _model("surface_parametric", "Parametric Surface", "Surface driven by parameters", "Surfaces",
           ["parameters", "mathematical", "function"], "advanced",
           "Build a parametric 3D surface from my data",
           _req(numeric=4, specific=[XYZ, (NUM, 1, "surface parameter")])),
    # -- Architecture ----------------------------------------------------
    _model("bars3d", "3D Bars", "Data architecture", "Architecture",
           ["bars", "architecture", "volumes"], "simple",
           "Build a 3D architecture where bars stand for my data like buildings"),
    _model("bars_grouped", "Grouped Bars", "Groups of 3D bars", "Architecture",
           ["groups", "comparison", "categories"], "medium",
           "Arrange my data in 3D bars grouped by category for easy comparison",
           _req(numeric=1, categorical=2, specific=[
               (NUM, 1, "bar height"), (CAT, 2, "main categories and subgroups")])),
    _model("bars_simple", "Bar Chart 3D", "3D bar chart", "Architecture",
           ["bars", "histogram", "comparison"], "simple",
           "Build a 3D bar chart to compare my data",
           _req(numeric=1, categorical=1, specific=[(NUM, 1, "bar height"), (CAT, 1, "categories")])),
    _model("bars_stacked", "Stacked Bars", "Stacked 3D bars", "Architecture",
           ["bars", "stacked", "cumulative"], "medium",
           "Stack my data in 3D bars to show its composition",
           _req(numeric=1, categorical=2, specific=[
               (NUM, 1, "values to stack"), (CAT, 2, "categories and subcategories")])),
    _model("bars_cylindrical", "3D Cylinders", "Cylindrical bars", "Architecture",
           ["cylinders", "tubes", "round"], "medium",
           "Show my data as elegant volumetric 3D cylinders",
           _req(numeric=2, categorical=1, specific=[
               (NUM, 1, "cylinder height"), (NUM, 1, "cylinder radius"), (CAT, 1, "categories")])),
    _model("bars_pyramid", "3D Pyramids", "Data shaped as pyramids", "Architecture",
           ["pyramids", "triangular", "hierarchy"], "medium",
           "Turn my data into 3D pyramids to build a visual hierarchy"),
    # -- Geometric -------------------------------------------------------
    _model("sphere_pack", "Packed Spheres", "Spheres of variable size", "Geometric",
           ["spheres", "packing", "bubbles"], "medium",
           "Arrange my data as packed spheres of variable size in 3D space"),
    _model("cube_matrix", "Cube Matrix", "Cubes arranged in a matrix", "Geometric",
           ["cubes", "matrix", "grid"], "simple",
           "Arrange my data in a structured geometric matrix of 3D cubes"),
    _model("cone_field", "Cone Field", "Cones oriented in space", "Geometric",
           ["cones", "direction", "vectors"], "medium",
           "Build a field of 3D cones oriented along the directions in my data"),
    _model("torus_data", "Data Torus", "Data on a toroidal surface", "Geometric",
           ["torus", "donut", "circular"], "advanced",
           "Project my data onto a 3D torus for a circular view"),
    _model("helix_spiral", "Helical Spiral", "Data along a 3D spiral", "Geometric",
           ["spiral", "helix", "rotation"], "medium",
           "Arrange my data along a rising helical spiral in 3D space"),
    # -- Networks --------------------------------------------------------
    _model("network_force", "Force Network", "Network with attraction forces", "Networks",
           ["forces", "attraction", "dynamic"], "advanced",
           "Generate a 3D network with attraction forces between nodes",
           _req(numeric=4, categorical=2, specific=[
               (NUM, 3, "node x, y, z coordinates"), (NUM, 1, "attraction force"),
               (CAT, 2, "source and target node ids")])),
    _model("network_hierarchical", "Hierarchical Network", "Network with hierarchy", "Networks",
           ["hierarchy", "organization", "structure"], "advanced",
           "Arrange my data as a hierarchical 3D network showing the relationships",
           _req(numeric=3, categorical=2, specific=[
               (NUM, 2, "node x, y coordinates"), (NUM, 1, "hierarchy level"),
               (CAT, 2, "source and target node ids")])),
    _model("network_circular", "Circular Network", "Network laid out on a circle", "Networks",
           ["circle", "circular", "organization"], "medium",
           "Arrange my data as a circular 3D network showing the relationships",
           _req(numeric=2, categorical=1, specific=[
               (NUM, 1, "node angle"), (NUM, 1, "node radius"), (CAT, 1, "node ids")])),
    _model("network_3d", "3D Network", "Graph of nodes and links", "Networks",
           ["network", "graph", "connections"], "medium",
           "Turn my data into a 3D network of connected nodes with visible links",
           _req(numeric=3, categorical=2, specific=[
               (NUM, 3, "node x, y, z coordinates"), (CAT, 2, "link source and target ids")])),
    _model("network_dynamic", "Dynamic Network", "Animated network", "Networks",
           ["animation", "movement", "evolution"], "advanced",
           "Animate my 3D network to show how it evolves over time",
           _req(numeric=4, categorical=2, specific=[
               (NUM, 3, "node x, y, z coordinates"), (NUM, 1, "time or sequence"),
               (CAT, 2, "link source and target ids")])),
    _model("tree_3d", "3D Tree", "Tree structure", "Networks",
           ["tree", "hierarchy", "branches"], "medium",
           "Structure my data as a hierarchical 3D tree with branches and nodes",
           _req(numeric=1, categorical=2, specific=[
               (NUM, 1, "hierarchy level"), (CAT, 2, "parent and child ids")])),
    _model("force_directed", "Force Directed", "Network with physics simulation", "Networks",
           ["force", "physics", "simulation"], "advanced",
           "Simulate my data with a force-directed layout for a natural 3D network",
           _req(numeric=2, categorical=2, specific=[
               (NUM, 2, "force and distance between nodes"),
               (CAT, 2, "link source and target ids")])),
    _model("chord_3d", "3D Chord Diagram", "Circular relationships in 3D", "Networks",
           ["chord", "circular", "relationships"], "advanced",
           "Build a circular 3D chord diagram of the relationships in my data",
           _req(numeric=1, categorical=2, specific=[
               (NUM, 1, "relationship value"), (CAT, 2, "source and target categories")])),
    _model("sankey_3d", "3D Sankey", "Data flows in 3D", "Networks",
           ["sankey", "flow", "transitions"], "advanced",
           "Show my data as 3D Sankey flows with smooth transitions",
           _req(numeric=1, categorical=3, specific=[
               (NUM, 1, "flow value"), (CAT, 2, "source and target categories"),
               (CAT, 1, "level or stage")])),
    # -- Temporal --------------------------------------------------------
    _model("timeline_3d", "3D Timeline", "Evolution over time in 3D", "Temporal",
           ["time", "evolution", "chronology"], "medium",
           "Lay out my data on a 3D timeline to show how it evolves",
           _req(numeric=1, temporal=1, specific=[
               (NUM, 1, "value to plot"), (TMP, 1, "date or timestamp")])),
    _model("wave_temporal", "Temporal Waves", "Data as waves through time", "Temporal",
           ["waves", "ripples", "periodic"], "medium",
           "Turn my data into rippling temporal waves in 3D space",
           _req(numeric=2, temporal=1, specific=[
               (NUM, 1, "wave amplitude"), (NUM, 1, "ripple frequency"),
               (TMP, 1, "time progression")])),
    _model("spiral_time", "Time Spiral", "Time along a rising spiral", "Temporal",
           ["spiral", "time", "cyclic"], "medium",
           "Wind my temporal data into a rising spiral to show its cycles",
           _req(numeric=2, temporal=1, categorical=1, specific=[
               (NUM, 1, "spiral height"), (NUM, 1, "spiral radius"),
               (TMP, 1, "time progression"), (CAT, 1, "cycle grouping")])),
    _model("ribbon_time", "Time Ribbon", "Evolution as a 3D ribbon", "Temporal",
           ["ribbon", "flow", "continuous"], "advanced",
           "Unroll my data as a flowing temporal ribbon in 3D space",
           _req(numeric=3, temporal=1, specific=[
               (NUM, 1, "ribbon height"), (NUM, 1, "ribbon width"), (NUM, 1, "ribbon twist"),
               (TMP, 1, "time progression")])),
    _model("cascade_time", "Time Cascade", "Data as a temporal cascade", "Temporal",
           ["cascade", "fall", "sequential"], "medium",
           "Arrange my data as a descending sequential time cascade",
           _req(numeric=2, temporal=1, specific=[
               (NUM, 1, "cascade height"), (NUM, 1, "fall speed"), (TMP, 1, "time sequence")])),
    # -- Statistical -----------------------------------------------------
    _model("box_plot_3d", "3D Box Plot", "Box-and-whisker plots in 3D", "Statistical",
           ["boxplot", "quartiles", "distribution"], "medium",
           "Show my data with 3D box plots for statistical analysis",
           _req(numeric=1, categorical=1, specific=[
               (NUM, 1, "distribution values"), (CAT, 1, "comparison groups")])),
    _model("violin_3d", "3D Violin Plot", "Violin-shaped distributions", "Statistical",
           ["violin", "distribution", "density"], "advanced",
           "Build 3D violin plots showing the distribution and density of my data",
           _req(numeric=2, categorical=1, specific=[
               (NUM, 1, "distribution values"), (NUM, 1, "distribution density"),
               (CAT, 1, "comparison groups")])),
    _model("histogram_3d", "3D Histogram", "Histogram with depth", "Statistical",
           ["histogram", "frequency", "distribution"], "simple",
           "Generate a 3D histogram with depth to analyze the distribution",
           _req(numeric=2, categorical=1, specific=[
               (NUM, 1, "bar values"), (NUM, 1, "bar height"), (CAT, 1, "grouping categories")])),
    _model("regression_3d", "3D Regression", "Regression plane in 3D", "Statistical",
           ["regression", "trend", "prediction"], "advanced",
           "Fit and display a 3D regression plane to predict trends",
           _req(numeric=3, specific=[
               (NUM, 1, "dependent variable (y)"), (NUM, 2, "independent variables (x1, x2)")])),
    _model("confidence_3d", "3D Intervals", "Confidence intervals in 3D", "Statistical",
           ["confidence", "intervals", "uncertainty"], "advanced",
           "Show the confidence intervals of my data in 3D space",
           _req(numeric=4, specific=[
               (NUM, 1, "mean values"), (NUM, 1, "lower bounds"), (NUM, 1, "upper bounds"),
               (NUM, 1, "confidence level")])),
    # -- Artistic --------------------------------------------------------
    _model("mandala_3d", "3D Mandala", "Hypnotic circular patterns", "Artistic",
           ["mandala", "circular", "hypnotic"], "medium",
           "Turn my data into a hypnotic 3D mandala with circular patterns",
           _req(numeric=3, specific=[
               (NUM, 1, "circle radius"), (NUM, 1, "pattern rotation"),
               (NUM, 1, "pattern intensity")])),
    _model("fractal_3d", "3D Fractal", "Complex fractal structures", "Artistic",
           ["fractal", "complex", "recursive"], "advanced",
           "Generate a complex recursive 3D fractal structure from my data",
           _req(numeric=4, specific=[
               (NUM, 1, "recursion level"), (NUM, 1, "scale factor"),
               (NUM, 1, "rotation angle"), (NUM, 1, "pattern complexity")])),
    _model("crystal_3d", "3D Crystal", "Crystalline structure", "Artistic",
           ["crystal", "geometric", "symmetry"], "medium",
           "Build a symmetric geometric 3D crystal structure from my data",
           _req(numeric=3, specific=[
               (NUM, 1, "face size"), (NUM, 1, "face angle"), (NUM, 1, "transparency")])),
    _model("galaxy_3d", "3D Galaxy", "Data shaped as a galaxy", "Artistic",
           ["galaxy", "cosmic", "spiral"], "medium",
           "Arrange my data as a cosmic spiral galaxy in 3D space",
           _req(numeric=4, specific=[
               (NUM, 1, "distance from center"), (NUM, 1, "rotation angle"),
               (NUM, 1, "brightness"), (NUM, 1, "star size")])),
    _model("dna_helix", "DNA Helix", "Double helix of data", "Artistic",
           ["dna", "helix", "biological"], "advanced",
           "Structure my data as a DNA double helix for a biological view"),
    # -- Geographic ------------------------------------------------------
    _model("globe_3d", "3D Globe", "Data on the Earth sphere", "Geographic",
           ["globe", "earth", "geographic"], "medium",
           "Project my data onto an interactive 3D globe"),
    _model("terrain_3d", "3D Terrain", "Topographic relief", "Geographic",
           ["terrain", "relief", "topography"], "medium",
           "Turn my data into a 3D topographic relief with natural elevations"),
    _model("map_extrusion", "Extruded Map", "Map with heights", "Geographic",
           ["map", "extrusion", "height"], "medium",
           "Extrude my data on a 3D map with proportional heights"),
    _model("flight_paths", "3D Paths", "Paths and trajectories", "Geographic",
           ["trajectories", "paths", "routes"], "medium",
           "Draw 3D flight paths connecting my data points"),
    _model("heatmap_globe", "Heatmap Globe", "Heat map on a globe", "Geographic",
           ["heatmap", "heat", "intensity"], "advanced",
           "Build a heat map on a 3D globe showing the intensity of my data"),
    # -- Scientific ------------------------------------------------------
    _model("molecule_3d", "3D Molecule", "Molecular structure", "Scientific",
           ["molecule", "atoms", "chemistry"], "advanced",
           "Model my data as a 3D molecular structure with atomic bonds"),
    _model("vector_field", "Vector Field", "Field of 3D vectors", "Scientific",
           ["vectors", "field", "direction"], "advanced",
           "Generate a 3D vector field showing the directions and forces in my data"),
    _model("particle_system", "Particle System", "Particle simulation", "Scientific",
           ["particles", "simulation", "physics"], "advanced",
           "Simulate my data as a 3D particle system with realistic physics"),
    _model("fluid_flow", "Fluid Flow", "Fluid stream", "Scientific",
           ["fluid", "flow", "dynamics"], "advanced",
           "Show my data as a 3D fluid flow"),
    _model("electromagnetic", "EM Field", "Electromagnetic field", "Scientific",
           ["electromagnetic", "waves", "physics"], "advanced",
           "Show my data as a 3D electromagnetic field with waves and forces"),
)

_BY_ID: dict[str, VisualizationModel] = {m.id: m for m in CATALOGUE}


def is_compatible(model: VisualizationModel,
                  classifications: dict[str, ColumnClassification]) -> bool:
    """True when the dataset has enough columns of each type for the model.

    ``specific_columns`` entries are checked independently against the
    per-type counts; the same columns may satisfy several entries.
    """
    counts = type_counts(classifications)
    req = model.requirements

    minimums = (
        (req.min_numeric_columns, NUM),
        (req.min_temporal_columns, TMP),
        (req.min_categorical_columns, CAT),
    )
    for minimum, kind in minimums:
        if minimum is not None and counts[kind] < minimum:
            return False

    for entry in req.specific_columns:
        if counts.get(entry.type, 0) < entry.count:
            return False
    return True


def compatible_models(classifications: dict[str, ColumnClassification]) -> list[VisualizationModel]:
    return [m for m in CATALOGUE if is_compatible(m, classifications)]


def get_model(model_id: str) -> VisualizationModel | None:
    return _BY_ID.get(model_id)


def list_categories() -> list[str]:
    return list(dict.fromkeys(m.category for m in CATALOGUE))


def search_models(term: str = "", category: str | None = None) -> list[VisualizationModel]:
    """Case-insensitive search over name, description and tags."""
    needle = (term or "").strip().lower()
    out = []
    for m in CATALOGUE:
        if category and m.category.lower() != category.lower():
            continue
        if needle:
            haystack = " ".join([m.name, m.description, *m.tags]).lower()
            if needle not in haystack:
                continue
        out.append(m)
    return out


def catalogue_entries(classifications: dict[str, ColumnClassification] | None = None,
                      term: str = "", category: str | None = None,
                      compatible_only: bool = False) -> list[dict[str, Any]]:
    """Serialized catalogue rows with a per-request ``compatible`` flag.

    Without a dataset only models with no requirements come out compatible.
    """
    rows = []
    for m in search_models(term, category):
        ok = is_compatible(m, classifications or {})
        if compatible_only and not ok:
            continue
        rows.append({**m.to_dict(), "compatible": ok})
    return rows
