from adstar import ADStar, ADStarParams, GridWorld

if __name__ == "__main__":
    world = GridWorld(30, 30, walls={(15, y) for y in range(30)} - {(15, 10), (15, 25)})
    start, goal = (0, 0), (29, 29)
    g = world.graph
    search = ADStar(
        start,
        [goal],
        g.successors,
        g.predecessors,
        g.cost,
        world.manhattan(goal),
        params=ADStarParams(epsilon=2.5),
    )

    for eps in (2.5, 1.5, 1.0):
        if eps < search.current_epsilon():
            search.lower_epsilon(eps)
        path, cost = search.compute_or_improve_path()
        print(f"epsilon={eps}: cost={cost}, expansions={search.stats.expansions}")

    # close the gap the current path uses and let the search repair itself
    gap = next(p for p in path if p[0] == 15)
    for t, c in world.block(gap):
        search.notify_edge_changed(t, c)
    path, cost = search.compute_or_improve_path()
    print(
        f"after blocking {gap}: cost={cost}, expansions={search.stats.expansions}, "
        f"underconsistent={search.stats.underconsistent}"
    )
