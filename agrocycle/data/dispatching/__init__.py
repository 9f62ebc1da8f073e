"""
Dispatching models

- Booking: a farmer's pickup request
- Vehicle: baler/truck with its operator (the vehicle registry)
- Assignment: binding of a booking to a baler (and optional truck), with the
  operator-facing execution record

Use FulfillmentContext (agrocycle.buisness.dispatching) to change them.
"""
