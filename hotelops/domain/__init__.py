"""Booking policy: state machines, penalties and the payment gate."""
