"""Client for a remote detection service.

WHY: The analyzers can run in a separate deposition-api instance. This
package talks to that service and turns every failure into a degraded
DetectionResult so callers can fall back to defaults.
"""
