"""
Operator Actor Policy

Only the operator of a vehicle on the assignment may report progress on it.
"""

from agrocycle.buisness.dispatching.errors import ActorNotPermitted


class OperatorActorPolicy:

    @classmethod
    def check(cls, assignment, actor_vehicle_id: int) -> None:
        if actor_vehicle_id is None or int(actor_vehicle_id) not in assignment.vehicle_ids:
            raise ActorNotPermitted(
                f"Vehicle {actor_vehicle_id} is not assigned to assignment {assignment.id}"
            )
