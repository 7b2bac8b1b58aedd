# debug_recommend.py
import json

from hajj_advisor.catalog import sample_packages
from hajj_advisor.recommender import recommend_from_payload


def main():
    payload = {
        "packages": [pkg.model_dump(mode="json") for pkg in sample_packages()],
        "preferences": {
            "budget": {"amount": 170000, "currency": "SAR", "headcount": 2},
            "provider": "any",
            "first_stay": "madinah",
            "makkah_zone": "A",
            "mina_camp": "any",
            "shifting": "shifting",
            "occupancy": "triple",
            "start_date": "2026-05-17",
            "end_date": "2026-06-04",
            "duration_days": 15,
        },
    }

    result = recommend_from_payload(payload)
    print(json.dumps(result.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    main()
