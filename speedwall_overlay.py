"""
SpeedWall Overlay - Camera overlay for speed climbing walls
Calibrate the screen scale by tapping two points on a known distance,
then place the wall template over the live camera feed
Features: Point/line adjustment, Pan, Zoom, Perspective tilt, Auto-level, Screenshots
"""

import argparse
import logging
import os
import tkinter as tk
from tkinter import colorchooser, messagebox, ttk

from speedwall import (
    AppMode,
    AppState,
    CameraError,
    CameraSession,
    DistanceUnit,
    MotionManager,
    OverlayRenderer,
    ReplayMotionSource,
    ScreenshotSaver,
    WaitingForDistance,
)
from speedwall.image_canvas import ImageCanvas, draw_calibration, is_near_segment
from speedwall.overlay_transform import TILT_LIMIT_DEG, TILT_STEP_DEG


FRAME_INTERVAL_MS = 33
MOTION_INTERVAL_MS = int(MotionManager.UPDATE_INTERVAL * 1000)
WHEEL_ZOOM_STEP = 1.1


class SpeedWallGUI:
    def __init__(self, root, camera, app_state, renderer, screenshots, motion_source=None):
        self.root = root
        self.root.title("SpeedWall Overlay")

        self.camera = camera
        self.app = app_state
        self.renderer = renderer
        self.screenshots = screenshots
        self.motion_source = motion_source

        # Canvas dimensions (will be set in setup_ui)
        self.canvas_width = 480
        self.canvas_height = 800

        # Drag state for calibration point / line manipulation
        self.dragging_point = None
        self.drag_base_position = None
        self.dragging_line = False
        self.line_drag_offset = (0.0, 0.0)

        self.controls_visible = True
        # Release that ends a double-click; not a tap
        self.ignore_release = False
        self.distance_dialog = None

        self.setup_ui()
        self.update_controls()

    def setup_ui(self):
        screen_height = self.root.winfo_screenheight()

        # Portrait canvas, 80% of screen height
        self.canvas_height = int(screen_height * 0.8)
        self.canvas_width = int(self.canvas_height * 0.5)

        self.canvas = tk.Canvas(self.root, width=self.canvas_width, height=self.canvas_height,
                                bg="black", highlightthickness=0, cursor="cross")
        self.canvas.pack(fill=tk.BOTH, expand=True)
        self.image_canvas = ImageCanvas(self.canvas, self.canvas_width, self.canvas_height)
        self.app.set_screen_size(self.canvas_width, self.canvas_height)

        self.canvas.bind("<ButtonPress-1>", self.on_canvas_press)
        self.canvas.bind("<B1-Motion>", self.on_canvas_drag)
        self.canvas.bind("<ButtonRelease-1>", self.on_canvas_release)
        self.canvas.bind("<Double-Button-1>", self.on_canvas_double_click)
        self.canvas.bind("<MouseWheel>", self.on_canvas_wheel)
        self.canvas.bind("<Button-4>", self.on_canvas_wheel)
        self.canvas.bind("<Button-5>", self.on_canvas_wheel)
        self.canvas.bind("<Configure>", self.on_canvas_resize)

        self.status_label = ttk.Label(self.root, text="", anchor=tk.W, padding=(8, 4))
        self.status_label.pack(fill=tk.X)

        # Calibration controls
        self.calibration_frame = ttk.Frame(self.root, padding=6)
        ttk.Button(self.calibration_frame, text="Reset", command=self.reset_calibration).pack(side=tk.LEFT, padx=4)
        self.distance_btn = ttk.Button(self.calibration_frame, text="Set Distance...",
                                       command=self.show_distance_dialog)
        self.distance_btn.pack(side=tk.LEFT, padx=4)
        self.continue_btn = ttk.Button(self.calibration_frame, text="Continue",
                                       command=self.proceed_to_overlay)
        self.continue_btn.pack(side=tk.RIGHT, padx=4)

        # Overlay controls
        self.overlay_frame = ttk.Frame(self.root, padding=6)
        top_row = ttk.Frame(self.overlay_frame)
        top_row.pack(fill=tk.X)
        ttk.Button(top_row, text="< Back", command=self.back_to_calibration).pack(side=tk.LEFT, padx=2)
        ttk.Button(top_row, text="Color...", command=self.choose_color).pack(side=tk.LEFT, padx=2)
        self.grid_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(top_row, text="Grid", variable=self.grid_var,
                        command=self.on_grid_toggled).pack(side=tk.LEFT, padx=2)
        self.labels_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(top_row, text="Labels", variable=self.labels_var,
                        command=self.on_labels_toggled).pack(side=tk.LEFT, padx=2)
        self.auto_level_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(top_row, text="Auto-level", variable=self.auto_level_var,
                        command=self.on_auto_level_toggled).pack(side=tk.LEFT, padx=2)
        ttk.Button(top_row, text="Screenshot", command=self.take_screenshot).pack(side=tk.RIGHT, padx=2)

        self.horizontal_tilt_var = tk.DoubleVar(value=0.0)
        self.vertical_tilt_var = tk.DoubleVar(value=0.0)
        self._add_tilt_row("<->", self.horizontal_tilt_var, self.on_horizontal_tilt, self.reset_horizontal_tilt)
        self._add_tilt_row("^v", self.vertical_tilt_var, self.on_vertical_tilt, self.reset_vertical_tilt)

        ttk.Label(self.overlay_frame, text="Double-click to hide controls. Wheel to zoom",
                  foreground="gray").pack(pady=(4, 0))

    def _add_tilt_row(self, label, variable, on_change, on_reset):
        row = ttk.Frame(self.overlay_frame)
        row.pack(fill=tk.X, pady=2)
        ttk.Label(row, text=label, width=4).pack(side=tk.LEFT)
        tk.Scale(row, from_=-TILT_LIMIT_DEG, to=TILT_LIMIT_DEG, resolution=TILT_STEP_DEG,
                 orient=tk.HORIZONTAL, variable=variable, showvalue=False,
                 command=lambda _value: on_change()).pack(side=tk.LEFT, fill=tk.X, expand=True)
        ttk.Button(row, text="Reset", width=6, command=on_reset).pack(side=tk.LEFT, padx=4)

    # Controls state

    def update_controls(self):
        self.calibration_frame.pack_forget()
        self.overlay_frame.pack_forget()
        if self.controls_visible:
            if self.app.mode is AppMode.CALIBRATION:
                self.calibration_frame.pack(fill=tk.X)
            else:
                self.overlay_frame.pack(fill=tk.X)

        calibrator = self.app.calibrator
        has_points = isinstance(calibrator.state, WaitingForDistance) or calibrator.is_complete()
        self.distance_btn.config(state=tk.NORMAL if has_points else tk.DISABLED)
        self.continue_btn.config(state=tk.NORMAL if calibrator.is_calibrated() else tk.DISABLED)

        transform = self.app.transform
        self.grid_var.set(transform.show_grid)
        self.labels_var.set(transform.show_labels)
        self.auto_level_var.set(transform.auto_level)
        self.horizontal_tilt_var.set(transform.horizontal_tilt)
        self.vertical_tilt_var.set(transform.vertical_tilt)

        self.status_label.config(text=self.instruction_text())

    def instruction_text(self):
        if self.app.mode is AppMode.OVERLAY:
            return (f"Scale: {self.app.pixels_per_meter:.1f} px/m, zoom {self.app.transform.user_scale * 100:.0f}%. "
                    "Drag to position the wall.")
        count = self.app.calibrator.get_point_count()
        if count == 0:
            return "Tap the first point of a known distance"
        if count == 1:
            return "Tap the second point"
        if not self.app.calibrator.is_complete():
            return "Enter the distance between the points"
        if not self.app.is_calibrated():
            return "Points overlap: drag them apart"
        return f"Calibration complete! {self.app.pixels_per_meter:.1f} px/m"

    # Frame loop

    def refresh(self):
        frame = self.image_canvas.fit_frame(self.camera.latest_frame())

        if self.app.mode is AppMode.OVERLAY:
            placement = self.app.current_placement(self.renderer.template_size())
            frame = self.renderer.render(frame, self.app.transform, placement)
            self.image_canvas.display_image(frame)
        else:
            self.image_canvas.display_image(frame, overlay_callback=self.draw_calibration_overlay)

        self.root.after(FRAME_INTERVAL_MS, self.refresh)

    def pump_motion(self):
        if self.motion_source is not None:
            with self.app.lock:
                self.motion_source.pump()
        self.root.after(MOTION_INTERVAL_MS, self.pump_motion)

    def draw_calibration_overlay(self, canvas_image):
        points = self.app.calibrator.calibration_points
        if self.dragging_line:
            dx, dy = self.line_drag_offset
            points = [(x + dx, y + dy) for x, y in points]
        label = self.app.units.format_distance() if self.app.calibrator.is_complete() else None
        draw_calibration(canvas_image, points, label)

    # Mouse handling

    def on_canvas_press(self, event):
        self.image_canvas.start_drag(event.x, event.y)

        if self.app.mode is AppMode.OVERLAY:
            self.app.transform.begin_drag()
            self.canvas.config(cursor="fleur")
            return

        calibrator = self.app.calibrator
        if not calibrator.is_complete():
            return

        point_idx = calibrator.get_point_near(event.x, event.y)
        if point_idx is not None:
            self.dragging_point = point_idx
            self.drag_base_position = calibrator.calibration_points[point_idx]
            self.canvas.config(cursor="hand2")
        elif is_near_segment(event.x, event.y, calibrator.calibration_points):
            self.dragging_line = True
            self.line_drag_offset = (0.0, 0.0)
            self.canvas.config(cursor="fleur")

    def on_canvas_drag(self, event):
        translation = self.image_canvas.drag_translation(event.x, event.y)
        if translation is None:
            return
        dx, dy = translation

        if self.app.mode is AppMode.OVERLAY:
            self.app.transform.update_drag(dx, dy)
        elif self.dragging_point is not None:
            base_x, base_y = self.drag_base_position
            self.app.update_point_position(self.dragging_point, base_x + dx, base_y + dy)
            self.status_label.config(text=self.instruction_text())
        elif self.dragging_line:
            self.line_drag_offset = (dx, dy)

    def on_canvas_release(self, event):
        if self.ignore_release:
            self.ignore_release = False
            self.image_canvas.end_drag()
            return

        translation = self.image_canvas.drag_translation(event.x, event.y) or (0, 0)
        self.image_canvas.end_drag()

        if self.app.mode is AppMode.OVERLAY:
            self.app.transform.end_drag(*translation)
        elif self.dragging_point is not None:
            self.dragging_point = None
            self.drag_base_position = None
            self.update_controls()
        elif self.dragging_line:
            self.dragging_line = False
            self.line_drag_offset = (0.0, 0.0)
            self.app.translate_points(*translation)
        elif self.app.record_tap(event.x, event.y):
            if isinstance(self.app.calibrator.state, WaitingForDistance):
                # Schedule the dialog to appear after canvas updates
                self.root.after(10, self.show_distance_dialog)
            self.update_controls()

        self.canvas.config(cursor="cross")

    def on_canvas_double_click(self, event):
        self.ignore_release = True
        if self.app.mode is AppMode.OVERLAY:
            self.controls_visible = not self.controls_visible
            self.update_controls()

    def on_canvas_wheel(self, event):
        if self.app.mode is not AppMode.OVERLAY:
            return
        zoom_in = event.num == 4 or event.delta > 0
        self.app.scale_overlay(WHEEL_ZOOM_STEP if zoom_in else 1 / WHEEL_ZOOM_STEP)
        self.status_label.config(text=self.instruction_text())

    def on_canvas_resize(self, event):
        if event.width < 10 or event.height < 10:
            return
        self.canvas_width = event.width
        self.canvas_height = event.height
        self.image_canvas.update_canvas_size(event.width, event.height)
        self.app.set_screen_size(event.width, event.height)

    # Calibration actions

    def show_distance_dialog(self):
        """Show dialog to enter the real-world distance between the points"""
        if self.distance_dialog is not None:
            return

        dialog = tk.Toplevel(self.root)
        dialog.title("Set Distance")
        dialog.transient(self.root)
        dialog.grab_set()
        dialog.resizable(False, False)
        self.distance_dialog = dialog

        content = ttk.Frame(dialog, padding="20")
        content.pack(fill=tk.BOTH, expand=True)

        ttk.Label(content, text="Enter the real-world distance between the points:").pack(pady=(0, 10))

        distance_frame = ttk.Frame(content)
        distance_frame.pack(pady=10)

        distance_var = tk.StringVar(value=self.app.units.distance_text)
        distance_entry = ttk.Entry(distance_frame, textvariable=distance_var, width=12)
        distance_entry.pack(side=tk.LEFT, padx=(0, 5))
        distance_entry.focus()

        unit_var = tk.StringVar(value=self.app.units.get_unit_label())
        ttk.Combobox(distance_frame, textvariable=unit_var, width=4, state="readonly",
                     values=[unit.value for unit in DistanceUnit]).pack(side=tk.LEFT)

        error_label = ttk.Label(content, text="", foreground="red")
        error_label.pack()

        button_frame = ttk.Frame(content)
        button_frame.pack(pady=(10, 0))

        def close():
            self.distance_dialog = None
            dialog.destroy()
            self.update_controls()

        def on_ok():
            self.app.units.set_units(unit_var.get())
            try:
                self.app.confirm_distance_text(distance_var.get())
            except ValueError as e:
                error_label.config(text=str(e))
                return
            close()

        ttk.Button(button_frame, text="OK", command=on_ok, width=10).pack(side=tk.LEFT, padx=5)
        ttk.Button(button_frame, text="Cancel", command=close, width=10).pack(side=tk.LEFT, padx=5)

        # Bind Enter key
        dialog.bind('<Return>', lambda e: on_ok())
        dialog.bind('<Escape>', lambda e: close())
        dialog.protocol("WM_DELETE_WINDOW", close)

    def reset_calibration(self):
        self.app.reset_calibration()
        self.update_controls()

    def proceed_to_overlay(self):
        if self.app.proceed_to_overlay():
            self.canvas.config(cursor="fleur")
        self.update_controls()

    def back_to_calibration(self):
        self.app.back_to_calibration()
        self.controls_visible = True
        self.canvas.config(cursor="cross")
        self.update_controls()

    # Overlay actions

    def choose_color(self):
        rgb, _hex = colorchooser.askcolor(color="#%02x%02x%02x" % self.app.transform.color,
                                          title="Overlay Color")
        if rgb is not None:
            self.app.transform.set_color(rgb)

    def on_grid_toggled(self):
        self.app.transform.show_grid = self.grid_var.get()

    def on_labels_toggled(self):
        self.app.transform.show_labels = self.labels_var.get()

    def on_auto_level_toggled(self):
        self.app.set_auto_level(self.auto_level_var.get())
        if self.auto_level_var.get() and not self.app.motion.active:
            self.status_label.config(text="Device motion is not available")

    def on_horizontal_tilt(self):
        self.app.transform.set_horizontal_tilt(self.horizontal_tilt_var.get())

    def on_vertical_tilt(self):
        self.app.transform.set_vertical_tilt(self.vertical_tilt_var.get())

    def reset_horizontal_tilt(self):
        self.app.transform.reset_horizontal_tilt()
        self.horizontal_tilt_var.set(0.0)

    def reset_vertical_tilt(self):
        self.app.transform.reset_vertical_tilt()
        self.vertical_tilt_var.set(0.0)

    def take_screenshot(self):
        frame = self.image_canvas.fit_frame(self.camera.latest_frame())
        placement = self.app.current_placement(self.renderer.template_size())
        frame = self.renderer.render(frame, self.app.transform, placement)

        if self.screenshots.save(frame):
            self.status_label.config(text=f"Screenshot saved to {self.screenshots.last_path}")
        else:
            messagebox.showerror("Screenshot Failed",
                                 f"Could not write to {self.screenshots.directory}. "
                                 "Check that the folder exists and is writable.")

    def close(self):
        self.app.motion.stop()
        self.camera.stop()
        self.root.destroy()


def main():
    parser = argparse.ArgumentParser(description='SpeedWall Overlay - Camera overlay for speed climbing walls')
    parser.add_argument('--camera', type=int, default=0, help='Camera device index (default: 0)')
    parser.add_argument('--units', choices=[unit.value for unit in DistanceUnit], default='m',
                        help='Units for the calibration distance (default: m)')
    parser.add_argument('--template-dir', default=os.path.join(os.path.dirname(os.path.abspath(__file__)), 'assets'),
                        help='Directory holding overlay/grid/labels template layers')
    parser.add_argument('--motion-log', help='CSV of gravity samples (gx,gy,gz) to drive auto-level')
    parser.add_argument('--screenshot-dir', default=os.path.join(os.path.expanduser('~'), 'Pictures', 'SpeedWall'),
                        help='Where screenshots are saved')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(message)s')

    motion_source = ReplayMotionSource.from_csv(args.motion_log) if args.motion_log else None
    app_state = AppState(motion=MotionManager(motion_source), units=args.units)
    renderer = OverlayRenderer.from_directory(args.template_dir)
    camera = CameraSession(args.camera)

    root = tk.Tk()
    app = SpeedWallGUI(root, camera, app_state, renderer, ScreenshotSaver(args.screenshot_dir),
                       motion_source=motion_source)
    root.protocol("WM_DELETE_WINDOW", app.close)

    try:
        camera.start()
    except CameraError as e:
        messagebox.showerror("Camera Error", str(e))

    app.refresh()
    app.pump_motion()
    root.mainloop()


if __name__ == "__main__":
    main()
