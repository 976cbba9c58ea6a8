import astropy.constants as c
import astropy.units as u

# Lengths in kpc, velocities in km/s, masses in Msun, times in Gyr.

# units of kpc (km/s)^2 / Msun
G = c.G.to(u.kpc * u.km**2 / u.s**2 / u.Msun).value

# units of kpc^3 / Gyr^2 / Msun
G_GYR = c.G.to(u.kpc**3 / u.Gyr**2 / u.Msun).value

# km/s/kpc -> 1/Gyr
FREQUENCY_TO_GYR = (u.km / u.s / u.kpc).to(1 / u.Gyr)
