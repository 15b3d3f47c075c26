"""Performance-slot allocation, waitlist promotion and live lineup for events."""
