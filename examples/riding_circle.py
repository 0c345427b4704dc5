"""Example scene: a circle riding the unit circle, swept once around by animation."""

import math

from proofscene import CircleObject, ManualFrameSource, ObjectType, SceneController


def main() -> None:
    frames = ManualFrameSource()
    controller = SceneController(frames=frames, seed=123)
    unit = controller.objects[0].id

    rider = controller.add_object(ObjectType.CIRCLE, label="Rider", r=0.5, center_on_curve_parent_id=unit)
    controller.update_object(rider, show_intersections_with=[unit])
    position = controller.state.find_as(rider, CircleObject).center_on_curve.parameter_id

    controller.toggle_animation(position)
    timestamp = 0.0
    while frames.pending:
        frames.fire(timestamp)
        angle = controller.parameters[position].value
        if abs(angle / (math.pi / 2) - round(angle / (math.pi / 2))) < 0.02:
            cx, cy = controller.effective_center(rider)
            points = ", ".join(f"({x:.3f}, {y:.3f})" for x, y in controller.intersections_for(rider))
            print(f"t={timestamp:.2f}s angle={angle:.3f} centre=({cx:.3f}, {cy:.3f}) hits: {points}")
        timestamp += 1.0 / 30.0

    print(f"Finished at angle {controller.parameters[position].value:.6f}")
    controller.undo()
    print(f"After undo: angle {controller.parameters[position].value:.6f}")


if __name__ == "__main__":
    main()
