"""
Console client for participants.

Joins a contest, submits an image pair, votes, and polls the contest
state every few seconds the way the browser pages do.

    python -m aivsreal.client --base-url http://localhost:8585
"""
import argparse
import json
import time

import requests

from .config import settings

BASE_URL = "http://localhost:8585"


class ClientError(Exception):
    def __init__(self, status_code, detail):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class ContestClient:
    def __init__(self, base_url=BASE_URL, http=None):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.contest_id = None
        self.participant_id = None
        self.session_id = None

    def _handle_response(self, response):
        if 200 <= response.status_code < 300:
            return response.json()
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        raise ClientError(response.status_code, detail)

    def _require_session(self):
        if self.session_id is None:
            raise ClientError(401, "Join a contest first")

    def join(self, join_code, nickname):
        response = self.http.post(
            f"{self.base_url}/contests/join",
            json={"join_code": join_code, "nickname": nickname},
        )
        data = self._handle_response(response)
        self.contest_id = data["contest_id"]
        self.participant_id = data["participant_id"]
        self.session_id = data["session_id"]
        return data

    def state(self):
        self._require_session()
        response = self.http.get(
            f"{self.base_url}/contests/{self.contest_id}",
            headers={"X-Session-ID": self.session_id},
        )
        return self._handle_response(response)

    def submit(self, ai_image_url, real_image_url):
        self._require_session()
        response = self.http.post(
            f"{self.base_url}/contests/{self.contest_id}/submissions",
            json={
                "participant_id": self.participant_id,
                "session_id": self.session_id,
                "ai_image_url": ai_image_url,
                "real_image_url": real_image_url,
            },
        )
        return self._handle_response(response)

    def vote(self, submission_id):
        self._require_session()
        response = self.http.post(
            f"{self.base_url}/contests/{self.contest_id}/votes",
            json={
                "participant_id": self.participant_id,
                "session_id": self.session_id,
                "submission_id": submission_id,
            },
        )
        return self._handle_response(response)

    def results(self):
        self._require_session()
        response = self.http.get(
            f"{self.base_url}/contests/{self.contest_id}/results",
            headers={"X-Session-ID": self.session_id},
        )
        return self._handle_response(response)

    def poll(
        self,
        until_status=None,
        interval=None,
        max_polls=None,
        on_update=None,
        sleep=time.sleep,
    ):
        """
        Re-fetch the contest state until it reaches one of ``until_status``.

        ``on_update`` is called with the state whenever the status changes.
        Returns the last state fetched; stops early after ``max_polls``.
        """
        if isinstance(until_status, str):
            until_status = {until_status}
        interval = settings.poll_interval_seconds if interval is None else interval

        last_status = None
        polls = 0
        while True:
            state = self.state()
            polls += 1
            status = state["contest"]["status"]
            if status != last_status:
                last_status = status
                if on_update:
                    on_update(state)
            if until_status and status in until_status:
                return state
            if max_polls is not None and polls >= max_polls:
                return state
            sleep(interval)


def log(message, status="INFO"):
    colors = {
        "INFO": "\033[94m",
        "SUCCESS": "\033[92m",
        "ERROR": "\033[91m",
        "WARNING": "\033[93m",
    }
    reset = "\033[0m"
    print(f"{colors.get(status, '')}{status}: {message}{reset}")


def _print_state(state):
    contest = state["contest"]
    log(f"Contest '{contest['title']}' is now {contest['status']}")
    print(json.dumps(state["submissions"], indent=2))


def run_menu(client):
    actions = {
        "1": "Join contest",
        "2": "Show contest state",
        "3": "Submit image pair",
        "4": "Vote",
        "5": "Wait for next phase",
        "6": "Show results",
        "q": "Quit",
    }
    while True:
        print()
        for key, label in actions.items():
            print(f"  {key}) {label}")
        choice = input("Select: ").strip().lower()

        try:
            if choice == "1":
                data = client.join(
                    input("Join code: "), input("Nickname: ")
                )
                log(f"Joined '{data['contest_title']}'", status="SUCCESS")
            elif choice == "2":
                _print_state(client.state())
            elif choice == "3":
                client.submit(
                    input("AI image URL: "), input("Real image URL: ")
                )
                log("Images submitted", status="SUCCESS")
            elif choice == "4":
                client.vote(int(input("Submission id: ")))
                log("Vote recorded", status="SUCCESS")
            elif choice == "5":
                current = client.state()["contest"]["status"]
                log(f"Waiting for the contest to leave {current}...")
                state = client.poll(
                    until_status={
                        s
                        for s in ("SUBMISSION", "VOTING", "RESULTS", "ENDED")
                        if s != current
                    }
                )
                _print_state(state)
            elif choice == "6":
                print(json.dumps(client.results(), indent=2))
            elif choice == "q":
                return
            else:
                log("Unknown option", status="WARNING")
        except ClientError as e:
            log(f"Request failed ({e.status_code}): {e.detail}", "ERROR")
        except requests.RequestException as e:
            log(f"Could not reach the server: {e}", status="ERROR")
        except ValueError:
            log("Please enter a number", status="WARNING")


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--base-url", default=BASE_URL)
    args = parser.parse_args(argv)
    run_menu(ContestClient(args.base_url))


if __name__ == "__main__":
    main()
