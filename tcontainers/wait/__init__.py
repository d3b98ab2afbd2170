"""Strategies that block until a container target is ready."""