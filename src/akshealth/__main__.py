from akshealth.cli import healthcheck

healthcheck()
