"""Monte Carlo path tracer for sphere scenes, built on Taichi.

This package renders scenes of spheres with diffuse, metal and glass materials
under a sky-gradient background, using:
- Recursive path tracing with a hard depth cutoff
- Thin-lens camera with depth of field
- Explicit per-sample random streams for reproducible, parallel renders
- Progressive sample accumulation and PPM/PNG output

Subpackages:
    core: Rays, vector utilities, random streams, integrator and render loop
    geometry: Sphere primitive and hit records
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, nearest-hit queries, scene manager and presets
    camera: Thin-lens camera with ray generation
    preview: Color transform and image export
"""

__version__ = "0.1.0"
