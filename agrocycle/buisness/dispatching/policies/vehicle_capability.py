"""
Vehicle Capability Policy

Checks that each vehicle can fill the role it is assigned to.
Availability is not checked here; it is claimed atomically by the registry.
"""

from typing import Optional
from agrocycle.buisness.dispatching.errors import NoCapability


class VehicleCapabilityPolicy:

    @classmethod
    def check(cls, baler, truck: Optional[object] = None) -> None:
        """
        Args:
            baler: Vehicle used as the baler
            truck: Optional vehicle used as the truck

        Raises:
            NoCapability: if a vehicle type does not match its role
        """
        if not baler.can_bale:
            raise NoCapability(
                f"Vehicle {baler.id} is a {baler.vehicle_type} and cannot bale"
            )

        if truck is None:
            return

        if truck.id == baler.id:
            raise NoCapability(
                f"Vehicle {baler.id} cannot be both the baler and the truck of one assignment"
            )

        if not truck.can_haul:
            raise NoCapability(
                f"Vehicle {truck.id} is a {truck.vehicle_type} and cannot haul"
            )
