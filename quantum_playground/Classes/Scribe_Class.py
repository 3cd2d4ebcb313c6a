import os
import datetime
import numpy as np
import pandas as pd


class Scribe:
    """
    Handles all diagnostics recording and data writing for a simulation.
    Keeps I/O out of the simulation itself: the caller decides when to record
    and when to save.
    """

    def __init__(self, simulation, base_directory="data"):
        """
        Initialize the Scribe.

        Parameters:
            simulation: Simulation_Class instance (for accessing grid info, etc.)
            base_directory (str): Directory under which run folders are created
        """
        self.simulation = simulation
        self.base_directory = base_directory
        self.snapshot_directory = None

        # Data storage
        self.probability_log = []
        self.measurement_log = []
        self.snapshots = {}

    def record(self):
        """
        Log the current time, total probability and location of the density maximum.

        Returns:
            dict: The recorded row
        """
        sim = self.simulation
        density = sim.get_probability_density()
        iy, ix = np.unravel_index(np.argmax(density), density.shape)

        row = {
            "time": float(sim.get_time()),
            "total_probability": float(sim.get_total_probability()),
            "ix": int(ix),
            "iy": int(iy),
            "x": float(ix * sim.dx),
            "y": float(iy * sim.dx),
            "max_density": float(density[iy, ix]),
        }
        self.probability_log.append(row)
        return row

    def record_measurement(self, x, y, result):
        """
        Log a measurement outcome.

        Parameters:
            x, y: Physical position of the detector
            result (dict): Return value of Simulation_Class.measure
        """
        self.measurement_log.append({
            "time": float(self.simulation.get_time()),
            "x": float(x),
            "y": float(y),
            "found": bool(result["found"]),
            "probability": float(result["probability"]),
        })

    def take_snapshot(self):
        """Keep a copy of the wave function at the current time."""
        self.snapshots[float(self.simulation.get_time())] = self.simulation.get_wavefunction()

    def probability_frame(self):
        return pd.DataFrame(self.probability_log, columns=["time", "total_probability", "ix", "iy", "x", "y",
                                                           "max_density"])

    def measurement_frame(self):
        return pd.DataFrame(self.measurement_log, columns=["time", "x", "y", "found", "probability"])

    def setup_directory(self):
        """
        Create a timestamped directory for this run.

        Returns:
            str: Path to the snapshot directory
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        save_dir = os.path.join(self.base_directory, f"simulation_{timestamp}")
        os.makedirs(save_dir, exist_ok=True)
        self.snapshot_directory = save_dir
        return save_dir

    def save(self):
        """
        Write the probability log, measurement log, snapshots and metadata.

        Returns:
            str: Path to the directory written to
        """
        if self.snapshot_directory is None:
            self.setup_directory()

        probability_path = os.path.join(self.snapshot_directory, "probability.csv")
        self.probability_frame().to_csv(probability_path, index=False, float_format="%.9e")

        measurement_path = os.path.join(self.snapshot_directory, "measurements.csv")
        self.measurement_frame().to_csv(measurement_path, index=False, float_format="%.9e")

        for time, psi in self.snapshots.items():
            np.save(os.path.join(self.snapshot_directory, f"psi_snapshot_at_time_{time:.6f}.npy"), psi)

        self.save_metadata()
        print(f"Diagnostics saved to: {self.snapshot_directory}")
        return self.snapshot_directory

    def save_metadata(self):
        with open(os.path.join(self.snapshot_directory, "metadata.txt"), "w") as f:
            for key, value in self.simulation.get_parameters().items():
                f.write(f"{key}: {value}\n")
            f.write("Snapshot times:\n")
            f.write(",".join(str(t) for t in self.snapshots))
