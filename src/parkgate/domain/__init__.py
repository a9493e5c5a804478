"""Domain layer: entities, value objects, components and errors of the facility"""
