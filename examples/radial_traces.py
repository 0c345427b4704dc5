"""Example scene: a circle whose radius is |sin(x)|, with its discrete traces."""

from proofscene import CircleObject, ObjectType, SceneController, discrete_trace_radii


def main() -> None:
    controller = SceneController(seed=123, with_unit_circle=False)
    cid = controller.add_object(
        ObjectType.CIRCLE,
        label="Petal",
        cx=0.0,
        cy=0.0,
        is_radial=True,
        expression="sinx",
        show_discrete_traces=True,
        discrete_trace_steps=11,
    )
    circle = controller.state.find_as(cid, CircleObject)
    print(f"Stored expression: {circle.radial_function.expression}")

    pid = circle.radial_function.parameter_id
    controller.begin_gesture(pid)
    for value in (0.5, 1.0, 1.5):
        controller.update_parameter(pid, value)
        print(f"x={value:.1f} -> r={controller.effective_radius(cid):.6f}")
    controller.end_gesture(pid, 1.5)

    radii = discrete_trace_radii(controller.state.find_as(cid, CircleObject), controller.state)
    print("Trace radii:", ", ".join(f"{r:.3f}" for r in radii))
    print(f"History entries: {len(controller.history)}")


if __name__ == "__main__":
    main()
