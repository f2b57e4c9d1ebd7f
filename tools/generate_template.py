"""
Generate wall template layers for the SpeedWall overlay
Creates a 3 x 15 m speed wall template as three RGBA layers:
- overlay.png: hold positions (always shown)
- grid.png: 1.5 m panel grid
- labels.png: panel row/column labels
Also writes a sample gravity log for exercising auto-level without a sensor.
"""

import json
import math
import os

import cv2
import numpy as np

# Configuration
PX_PER_METER = 100

# Wall dimensions
WIDTH_M = 3.0
HEIGHT_M = 15.0
WIDTH_PX = int(WIDTH_M * PX_PER_METER)
HEIGHT_PX = int(HEIGHT_M * PX_PER_METER)

# Panel grid
PANEL_M = 1.5
PANEL_PX = int(PANEL_M * PX_PER_METER)

# Holds per lane, (x, y) in meters from the bottom-left corner of the lane
HOLD_RADIUS_PX = int(0.09 * PX_PER_METER)
HOLDS_M = [
    (0.60, 1.00), (1.10, 1.60), (0.50, 2.30), (1.20, 3.00), (0.70, 3.70),
    (1.00, 4.50), (0.45, 5.20), (1.15, 5.90), (0.65, 6.70), (1.05, 7.40),
    (0.55, 8.20), (1.20, 8.90), (0.70, 9.70), (1.00, 10.50), (0.50, 11.30),
    (1.10, 12.10), (0.75, 12.90), (1.00, 13.70), (0.75, 14.50),
]

print(f"Generating wall template:")
print(f"  Wall: {WIDTH_M}x{HEIGHT_M} m ({WIDTH_PX}x{HEIGHT_PX} px @ {PX_PER_METER} px/m)")
print(f"  Panel size: {PANEL_M} m ({PANEL_PX} px)")


def blank_layer():
    """Transparent RGBA layer; only alpha matters, the app tints it"""
    return np.zeros((HEIGHT_PX, WIDTH_PX, 4), dtype=np.uint8)


def to_px(x_m, y_m):
    """Meters from the bottom-left corner to image pixels"""
    return int(x_m * PX_PER_METER), int(HEIGHT_PX - y_m * PX_PER_METER)


# Holds layer
holds = blank_layer()
for lane_offset in (0.0, WIDTH_M / 2):
    for x_m, y_m in HOLDS_M:
        x_px, y_px = to_px(lane_offset + x_m * 0.5, y_m)
        cv2.circle(holds, (x_px, y_px), HOLD_RADIUS_PX, (0, 0, 0, 255), -1)
cv2.rectangle(holds, (0, 0), (WIDTH_PX - 1, HEIGHT_PX - 1), (0, 0, 0, 255), 3)

print(f"  [OK] Drew {2 * len(HOLDS_M)} holds in two lanes")

# Grid layer
grid = blank_layer()
for y in range(0, HEIGHT_PX + 1, PANEL_PX):
    cv2.line(grid, (0, y), (WIDTH_PX, y), (0, 0, 0, 255), 2)
for x in range(0, WIDTH_PX + 1, PANEL_PX):
    cv2.line(grid, (x, 0), (x, HEIGHT_PX), (0, 0, 0, 255), 2)

print("  [OK] Drew panel grid")

# Labels layer
labels = blank_layer()
rows = int(HEIGHT_M / PANEL_M)
cols = int(WIDTH_M / PANEL_M)
for row in range(rows):
    for col in range(cols):
        label = f"{row + 1}{'AB'[col]}"
        x_px = col * PANEL_PX + 8
        y_px = HEIGHT_PX - row * PANEL_PX - 10
        cv2.putText(labels, label, (x_px, y_px), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0, 255), 2)

print(f"  [OK] Labeled {rows * cols} panels")

# Create assets directory if it doesn't exist
assets_dir = os.path.join(os.path.dirname(__file__), "..", "assets")
os.makedirs(assets_dir, exist_ok=True)

for name, layer in (("overlay", holds), ("grid", grid), ("labels", labels)):
    path = os.path.join(assets_dir, f"{name}.png")
    # RGBA -> BGRA for OpenCV
    cv2.imwrite(path, cv2.cvtColor(layer, cv2.COLOR_RGBA2BGRA))
    print(f"[OK] Saved {path}")

# Sample gravity log: slow roll of +/-20 degrees with a face-up dip in the middle
motion_path = os.path.join(assets_dir, "sample_motion.csv")
with open(motion_path, 'w') as f:
    f.write("gx,gy,gz\n")
    for i in range(600):
        roll = math.radians(20) * math.sin(2 * math.pi * i / 300)
        in_plane = 0.15 if 250 <= i < 350 else 1.0
        gz = -math.sqrt(max(0.0, 1.0 - in_plane * in_plane))
        f.write(f"{in_plane * math.sin(roll):.5f},{-in_plane * math.cos(roll):.5f},{gz:.5f}\n")
print(f"[OK] Saved sample motion log: {motion_path}")

metadata = {
    "description": "Speed wall template for SpeedWall Overlay",
    "dimensions": {
        "width_m": WIDTH_M,
        "height_m": HEIGHT_M,
        "width_px": WIDTH_PX,
        "height_px": HEIGHT_PX,
        "px_per_meter": PX_PER_METER
    },
    "panel_m": PANEL_M,
    "holds_per_lane": len(HOLDS_M)
}

metadata_path = os.path.join(assets_dir, "template_metadata.json")
with open(metadata_path, 'w') as f:
    json.dump(metadata, f, indent=2)

print(f"[OK] Saved metadata: {metadata_path}")

print("\n" + "="*60)
print("Template generation complete!")
print("="*60)
print(f"\nTo run the overlay with the sample motion log:")
print(f"  python speedwall_overlay.py --motion-log assets/sample_motion.csv")
