"""University grievance-redressal portal API."""
