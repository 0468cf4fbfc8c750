#!/usr/bin/env python3
"""
Demo script: preview a bike route on a running server, then play it back
on the handlebar display.

Usage:
    python demo_navigation.py "Houston Hall, Philadelphia" "Penn Museum, Philadelphia"

Start the server first with: uvicorn cyclar.main:app --reload
"""

import sys
import time
import requests
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_URL = "http://localhost:8000"


def run_demo(origin: str, destination: str):
    """Preview the route, then send it to the display step by step."""
    print(f"Requesting route preview...")
    print(f"   From: {origin}")
    print(f"   To:   {destination}")
    print()

    try:
        resp = requests.post(
            f"{BASE_URL}/preview",
            json={"origin": origin, "destination": destination},
            timeout=30,
        )
        if resp.status_code != 200:
            print(f"HTTP Error {resp.status_code}: {resp.text}")
            return

        result = resp.json()
        if result.get("error"):
            print(f"Preview failed: {result['error']}")
            return

        steps = result.get("steps", [])
        print(f"Turn-by-turn directions ({len(steps)} steps):")
        for i, step in enumerate(steps, 1):
            print(f"   {i}. {step['simple']:<8} {step['raw_instruction'][:70]} (in {step['distance_text']})")
        if not steps:
            return

        resp = requests.post(f"{BASE_URL}/simulation/start", timeout=30)
        if resp.status_code != 200:
            print(f"Could not start playback: {resp.json().get('detail')}")
            return

        print("\nPlaying back on the display (Ctrl+C to stop)...")
        while True:
            state = requests.get(f"{BASE_URL}/status", timeout=30).json()
            print(f"   [{state['mode']}] step={state['current_index']} {state['connection_status']}")
            if state["mode"] != "simulating":
                break
            time.sleep(1)

    except requests.exceptions.ConnectionError:
        print("Connection error. Is the server running?")
        print("   Start it with: uvicorn cyclar.main:app --reload")
    except KeyboardInterrupt:
        requests.post(f"{BASE_URL}/simulation/stop", timeout=30)
        print("\nPlayback stopped.")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print('Usage: python demo_navigation.py "<origin address>" "<destination address>"')
        print("\nExample:")
        print('  python demo_navigation.py "Houston Hall, Philadelphia" "Penn Museum, Philadelphia"')
        sys.exit(1)

    run_demo(sys.argv[1], sys.argv[2])
