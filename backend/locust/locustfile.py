"""
Locust Load Test Suite

Seed first (python -m cinema.scripts.seed_data), then point SHOW_ID at a
seeded show.

Run scenarios:
  locust -f locustfile.py --tags contention  # Many users, few seats
  locust -f locustfile.py --tags throughput  # Cached catalog reads
  locust -f locustfile.py --tags edge        # Bad input
  locust -f locustfile.py                    # All tests
"""

import os
import random
from locust import HttpUser, task, between, tag

SHOW_ID = int(os.environ.get("SHOW_ID", "1"))
PASSWORD = "loadtest-pass"
MOVIE_IDS = []


def random_email():
    return f"load_{random.randint(100000, 999999)}@test.com"


class AuthenticatedUser(HttpUser):
    abstract = True

    def on_start(self):
        email = random_email()
        resp = self.client.post("/api/v1/auth/register", json={
            "name": "Load Tester",
            "email": email,
            "password": PASSWORD,
        })
        if resp.status_code != 201:
            resp = self.client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})

        if resp.status_code in (200, 201):
            token = resp.json()["data"]["access_token"]
            self.headers = {"Authorization": f"Bearer {token}"}
        else:
            self.headers = {}

    def free_seat_ids(self):
        resp = self.client.get(f"/api/v1/shows/{SHOW_ID}/seats", name="/api/v1/shows/{id}/seats")
        if resp.status_code != 200:
            return []
        return [
            s["seat_id"] for s in resp.json()
            if not (s["is_booked"] or s["is_locked"] or s["is_disabled"])
        ]


class ContentionUser(AuthenticatedUser):
    """
    TEST 1: Contention - everyone fights for the same show

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After test, verify no seat is booked twice:
      SELECT bs.seat_id, COUNT(*) FROM booking_seats bs
      JOIN bookings b ON b.id = bs.booking_id
      WHERE b.show_id = X AND b.status <> 'Cancelled'
      GROUP BY bs.seat_id HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.1)

    @tag("contention")
    @task
    def lock_and_confirm(self):
        if not self.headers:
            return
        free = self.free_seat_ids()
        if not free:
            return
        seat_ids = random.sample(free, min(len(free), random.randint(1, 3)))
        body = {"show_id": SHOW_ID, "seat_ids": seat_ids}

        with self.client.post("/api/v1/bookings/lock", json=body, headers=self.headers,
                              catch_response=True) as resp:
            if resp.status_code == 409:
                resp.success()  # Expected: someone else got there first
                return
            if resp.status_code != 200:
                resp.failure(f"Unexpected: {resp.status_code}")
                return

        with self.client.post("/api/v1/bookings/confirm", json=body, headers=self.headers,
                              catch_response=True) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_movies_cached(self):
        resp = self.client.get("/api/v1/movies", name="/api/v1/movies [cached]")
        if resp.status_code == 200:
            for movie in resp.json():
                if movie["id"] not in MOVIE_IDS:
                    MOVIE_IDS.append(movie["id"])

    @tag("throughput", "read")
    @task(5)
    def shows_by_movie_cached(self):
        if MOVIE_IDS:
            self.client.get(f"/api/v1/shows/by-movie/{random.choice(MOVIE_IDS)}",
                            name="/api/v1/shows/by-movie/{id} [cached]")

    @tag("throughput", "read")
    @task(3)
    def seat_map(self):
        self.client.get(f"/api/v1/shows/{SHOW_ID}/seats", name="/api/v1/shows/{id}/seats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(AuthenticatedUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, path, body, allowed, headers=None, name=None):
        with self.client.post(path, json=body, headers=self.headers if headers is None else headers,
                              catch_response=True, name=name) as resp:
            if resp.status_code in allowed:
                resp.success()
            else:
                resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_show(self):
        self._expect("/api/v1/bookings/lock", {"show_id": 999999, "seat_ids": [1]}, [404])

    @tag("edge")
    @task
    def empty_selection(self):
        self._expect("/api/v1/bookings/lock", {"show_id": SHOW_ID, "seat_ids": []}, [400])

    @tag("edge")
    @task
    def negative_seat_ids(self):
        self._expect("/api/v1/bookings/lock", {"show_id": SHOW_ID, "seat_ids": [-1, 0]}, [400])

    @tag("edge")
    @task
    def foreign_seat(self):
        self._expect("/api/v1/bookings/lock", {"show_id": SHOW_ID, "seat_ids": [999999]}, [400])

    @tag("edge")
    @task
    def confirm_without_lock(self):
        self._expect("/api/v1/bookings/confirm", {"show_id": SHOW_ID, "seat_ids": [1]}, [409])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/lock", data="not json at all",
                              headers=self.headers, catch_response=True) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        self._expect("/api/v1/bookings/lock", {"show_id": SHOW_ID, "seat_ids": [1]}, [401], headers={})
