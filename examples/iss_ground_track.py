"""
Example: ISS ground track from a fixed element set.

This example doesn't need network access — it decodes a historical ISS
TLE, prints the sub-satellite point every ten minutes for one orbit, and
saves a ground-track plot next to the script.
"""

import sys
sys.path.insert(0, "src")

from datetime import timedelta
from tletrack.tle_parser import parse
from tletrack.propagator import Propagator, PropagatorSettings
from tletrack.viz import plot_ground_track

ISS_TLE = """ISS (ZARYA)
1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927
2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"""


def main():
    print("=" * 65)
    print("  tletrack — ISS Ground Track Demo")
    print("=" * 65)

    elements = parse(ISS_TLE)
    print(f"\n{elements.name} (NORAD {elements.catalog_number})")
    print(f"  Epoch:        {elements.epoch:%Y-%m-%d %H:%M:%S} UTC")
    print(f"  Inclination:  {elements.inclination:.4f}° ({elements.orbit_direction.name.lower()})")
    print(f"  Eccentricity: {elements.eccentricity:.7f}")
    print(f"  Mean motion:  {elements.mean_motion:.8f} rev/day")

    propagator = Propagator(PropagatorSettings.strict())
    start = elements.epoch
    end = start + timedelta(days=1.0 / elements.mean_motion)

    print(f"\n{'─' * 65}")
    t = start
    while t <= end:
        print("  " + propagator.propagate(elements, t).summary())
        t += timedelta(minutes=10)

    track = propagator.ground_track(elements, start, end, step=timedelta(seconds=30))
    plot_ground_track(
        track,
        title=f"{elements.name} — Ground Track",
        save_path="iss_ground_track.png",
    )
    print(f"\n{len(track)} samples plotted to iss_ground_track.png")


if __name__ == "__main__":
    main()
