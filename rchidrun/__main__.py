"""Allow `python -m rchidrun`."""

from rchidrun.cli import run

if __name__ == "__main__":
    run()
