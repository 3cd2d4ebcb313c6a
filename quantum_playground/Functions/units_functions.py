from astropy import units, constants


DEFAULT_SIM_UNITS = {"dUnits": "nm", "tUnits": "fs", "mUnits": "kg", "eUnits": "eV"}


def physical_constants(m_s, sim_units=None):
    """
    Express h_bar and the particle mass in the simulation unit system.

    Parameters:
        m_s (float): Particle rest energy in units of sim_units["eUnits"]
        sim_units (dict): Unit names for distance, time, mass and energy
                          (keys "dUnits", "tUnits", "mUnits", "eUnits")

    Returns:
        dict: {"h_bar": ..., "mass": ..., "units": {...}} with plain floats
    """
    sim_units = dict(DEFAULT_SIM_UNITS, **(sim_units or {}))
    d_units, t_units = sim_units["dUnits"], sim_units["tUnits"]
    m_units, e_units = sim_units["mUnits"], sim_units["eUnits"]

    e_unit = getattr(units, e_units)

    # Mass of the particle
    mass = (m_s * e_unit / constants.c ** 2).to(m_units).value
    h_bar = constants.hbar.to(f"{d_units}2 {m_units}/{t_units}").value

    return {"h_bar": float(h_bar), "mass": float(mass), "units": sim_units}
