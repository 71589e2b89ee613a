"""coachcal - calendar placement and rescheduling for coached training programs."""
