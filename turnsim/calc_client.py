import logging

import requests

CALC_SERVICE_URL = "http://127.0.0.1:3000/calculate"
DEFAULT_TIMEOUT = 2.0


class CalcClient:
    """
    Client for an external damage-calc service.

    The service receives the inputs of the base-damage step and answers with
    ``{"base": <int>}``. Any failure returns ``None`` so the caller can fall
    back to the local formula.
    """

    def __init__(self, base_url=CALC_SERVICE_URL, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def base_damage(self, level, power, attack, defense):
        payload = {
            "level": level,
            "power": power,
            "attack": attack,
            "defense": defense,
        }
        try:
            response = self.session.post(self.base_url, json=payload, timeout=self.timeout)
            if response.status_code != 200:
                logging.warning(f"Calc service returned {response.status_code}: {response.text}")
                return None
            data = response.json()
            return int(data["base"])
        except requests.RequestException as e:
            logging.warning(f"Error calling calc service: {e}")
            return None
        except (ValueError, KeyError, TypeError) as e:
            logging.warning(f"Malformed calc service response: {e}")
            return None
