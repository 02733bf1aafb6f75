"""Bookings app package.

This app holds the reservation ledger: one reservation model for
campsite stays, activity seats and equipment rentals, the capacity and
status rules that keep it consistent, pricing and refunds, and the
periodic tasks that complete finished stays. Capacity checks run inside
database transactions with the resource row locked where supported.
"""
